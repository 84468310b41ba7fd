"""CLI shim -- delegates to linkbuilder.cli.main().

Usage:
    python sync_links.py sync --source ./docs --output ./out/links.csv
    python sync_links.py get-links --output-dir ./out
"""

import sys

from linkbuilder.cli import main

if __name__ == "__main__":
    sys.exit(main())
