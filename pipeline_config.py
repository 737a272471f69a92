"""Shared configuration for the normal estimation pipeline parameters."""

import math

from neighborhood_index import DEFAULT_MAX_LEAF_SIZE

SEED_STRATEGIES = ("fixed", "min_variation")


def add_common_args(parser):
    """Add common command-line arguments shared by the normal estimation scripts."""

    # Input args.
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="Path to input mesh or point cloud (OFF, PLY, OBJ, ...).",
    )

    # Output / paths.
    parser.add_argument(
        "--output_dir",
        type=str,
        default="output",
        help="Directory where all outputs will be saved.",
    )
    parser.add_argument(
        "--output_name",
        type=str,
        default="cloud",
        help="Base name used for generated files.",
    )

    # Neighbourhood args.
    parser.add_argument(
        "--k",
        type=int,
        default=5,
        help="Number of nearest neighbours per point (typically 5..15).",
    )
    parser.add_argument(
        "--max_distance",
        type=float,
        default=math.inf,
        help="Ignore neighbours farther away than this; default is unbounded.",
    )
    parser.add_argument(
        "--max_leaf_size",
        type=int,
        default=DEFAULT_MAX_LEAF_SIZE,
        help="Maximum number of points in a k-d tree leaf.",
    )
    parser.add_argument(
        "--use_faces",
        action="store_true",
        help="Take neighbours from mesh faces instead of k-NN search.",
    )

    # Orientation args.
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Point index orientation starts from (with --seed_strategy fixed).",
    )
    parser.add_argument(
        "--seed_strategy",
        type=str,
        choices=SEED_STRATEGIES,
        default="fixed",
        help="How to pick the orientation seed: a fixed index or the flattest point.",
    )
    parser.add_argument(
        "--no_orient",
        action="store_true",
        help="If set, keep the raw signs from plane fitting.",
    )

    # Misc.
    parser.add_argument(
        "--log_level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )


def get_common_args_dict(args):
    """Extract common arguments from parsed args as a dictionary."""
    common_attrs = [
        'input', 'output_dir', 'output_name', 'k', 'max_distance',
        'max_leaf_size', 'use_faces', 'seed', 'seed_strategy', 'no_orient',
        'log_level'
    ]
    return {attr: getattr(args, attr) for attr in common_attrs if hasattr(args, attr)}
