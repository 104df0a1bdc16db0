"""Script to run the geo doctor (integrity checks + threshold gate) from a checkout."""

import sys
from pathlib import Path

# Add src/ to Python path so the script works without installing the package
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from geo_doctor.cli import main

if __name__ == "__main__":
    # Extra flags (--autofix-symmetry, --out, ...) are passed through to the validate verb
    global_args = []
    rest = sys.argv[1:]
    while rest and rest[0] in ("--config", "--log-level"):
        global_args.extend(rest[:2])
        rest = rest[2:]
    sys.exit(main(global_args + ["validate"] + rest))
