"""Entry point for ``python -m portainer_updater``."""

from portainer_updater.cli import main

if __name__ == "__main__":
    main()
