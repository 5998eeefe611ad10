# pyright: standard

"""backtor-restic: backtor_restic/__main__.py.

Conductor worker that creates and removes restic backups, serializing all
access to a single restic repository.
"""

import sys

from .cli import create_parser, execute_worker


def main(argv=None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    return execute_worker(args)


if __name__ == "__main__":
    sys.exit(main())
