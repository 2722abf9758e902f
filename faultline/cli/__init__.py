"""
Faultline CLI.

Usage:
    faultline render record.json --format html --debug
    faultline dump data.yaml
"""

__cli_name__ = "faultline"


def main():
    """Wrapper to avoid eager import of __main__ which causes warnings with -m."""
    from .__main__ import main as _main
    return _main()
