"""Entry point for ``python -m mixed_build``."""

from mixed_build.cli import safe_main

if __name__ == "__main__":
    safe_main()
