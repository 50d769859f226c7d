"""
Package entry point.

Allows running the application via:

    python -m acadnav

This simply forwards execution to acadnav.cli.main().
"""

from acadnav.cli import main

if __name__ == "__main__":
    main()
