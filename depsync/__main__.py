"""CLI entry point: python -m depsync"""

from depsync.cli import main

if __name__ == "__main__":
    main()
