import argparse
from pathlib import Path

def parse_main_args(argv=None):
    parser = argparse.ArgumentParser(description="Clickwork - Point and click adventure interaction core")
    parser.add_argument(
        "--world",
        type=Path,
        default=Path("assets/worlds/tankard.yaml"),
        help="Path to a world YAML file"
    )
    parser.add_argument(
        "--saves",
        type=Path,
        default=Path("saves"),
        help="Folder for save files"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    return parser.parse_args(argv)
