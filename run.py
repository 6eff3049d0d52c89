"""Play a world from a source checkout: python run.py --world assets/worlds/tankard.yaml"""
import sys
from pathlib import Path

# src/ layout: make the package importable without installing it
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from clickwork.cli import main

if __name__ == "__main__":
    sys.exit(main())
