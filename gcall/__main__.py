"""Allow `python -m gcall`."""

from gcall.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
