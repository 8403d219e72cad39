"""Run the bk-sync command line tool with `python -m bk_sync`."""

from bk_sync.tool.bk_sync import main

if __name__ == "__main__":
    main()
