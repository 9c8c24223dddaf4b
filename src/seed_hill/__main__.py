"""Allow `python -m seed_hill`."""
from seed_hill.cli import cli

if __name__ == "__main__":
    cli(prog_name="seed-hill")
