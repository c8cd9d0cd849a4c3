"""Module entrypoint for ``python -m sidetree``."""

from .cli import main


if __name__ == "__main__":
    main()
