"""Run the release-manager command line tool as a module."""

from release_manager.tool.release_manager import main

if __name__ == "__main__":
    main()
