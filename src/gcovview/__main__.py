"""Allow `python -m gcovview`."""

from gcovview.cli.main import cli

if __name__ == "__main__":
    cli()
