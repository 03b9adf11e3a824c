"""Support `python -m kaleidoscope_focus`."""

from kaleidoscope_focus.cli import main

if __name__ == "__main__":
    main()
