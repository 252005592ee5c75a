"""Argument parsing functionality for upgate."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="upgate",
        description=(
            "upgate - resolve available updates, breakpoints and license "
            "status for an application and its plugins"
        ),
        add_help=True,
    )

    parser.add_argument("-r", "--request",
                        dest="REQUEST",
                        help="Path to the installation request file (YAML or JSON)",
                        action="store", type=str,
                        required=True)

    registry_group = parser.add_mutually_exclusive_group()
    registry_group.add_argument("--registry-file",
                                dest="REGISTRY_FILE",
                                help="Answer from a local package data file (YAML or JSON) instead of Packagist",
                                action="store", type=str)
    registry_group.add_argument("--registry-url",
                                dest="REGISTRY_URL",
                                help="Composer v2 metadata base URL (default: Packagist)",
                                action="store", type=str)

    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output JSON file (default: stdout)",
                        action="store",
                        type=str)

    package_name_group = parser.add_mutually_exclusive_group()
    package_name_group.add_argument("--include-package-name",
                                    dest="INCLUDE_PACKAGE_NAME",
                                    help="Always echo package names in the report",
                                    action="store_const", const=True)
    package_name_group.add_argument("--no-package-name",
                                    dest="INCLUDE_PACKAGE_NAME",
                                    help="Never echo package names in the report",
                                    action="store_const", const=False)

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
