"""
fpvault entry point: ``python -m fpvault`` or the ``fpvault`` console script.
"""

import sys

from fpvault.cli import main as cli_main


def main() -> None:
    sys.exit(cli_main())


if __name__ == "__main__":
    main()
