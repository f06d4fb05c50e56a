"""Module entrypoint for ``python -m treedoc``.

All argument parsing and run setup happen in ``treedoc.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
