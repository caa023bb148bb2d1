import sys

from buildstats.cli import run_cli

sys.exit(run_cli())
