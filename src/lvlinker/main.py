#!/usr/bin/env python3
"""
Main application module for lvlinker
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from lvlinker import __version__, __version_date__
from lvlinker.core.choice_provider import ConsoleChoiceProvider, NonInteractiveChoiceProvider
from lvlinker.core.engine import LinkingEngine, RunOptions
from lvlinker.core.errors import LinkerError
from lvlinker.core.report import EXIT_FATAL, EXIT_INTERRUPTED
from lvlinker.core.wine_runtime import WineRuntime
from lvlinker.utils.logger import get_logger, setup_logging
from lvlinker.utils.settings_manager import SettingsManager


class LinkerApp:
    """Main lvlinker application class"""

    def __init__(self, settings: Optional[SettingsManager] = None):
        self.logger = get_logger(__name__)
        self.settings = settings or SettingsManager()

    def build_engine(self, args: argparse.Namespace) -> LinkingEngine:
        """Create the engine, applying command line overrides to the settings"""
        prefix = Path(args.wine).expanduser() if args.wine else self.settings.get_wine_prefix()
        runtime = WineRuntime(prefix, self.settings.get_wine_command(), self.settings.get_runtime_timeout())

        if args.non_interactive or not sys.stdin.isatty():
            provider = NonInteractiveChoiceProvider()
        else:
            provider = ConsoleChoiceProvider()

        return LinkingEngine(self.settings, choice_provider=provider, runtime=runtime)

    @staticmethod
    def build_options(args: argparse.Namespace) -> RunOptions:
        return RunOptions(
            dry_run=args.dry_run,
            backup=args.backup,
            library_paths=[Path(p) for p in args.path],
            target_dir=Path(args.target) if args.target else None,
            reselect=args.reselect,
            add_games=args.add_games,
            select_ids=list(args.select),
            exclude_ids=list(args.exclude_id),
            offline=args.offline,
            refresh_names=args.refresh_names,
            write_registry=False if args.no_registry else None,
        )

    def run(self, args: argparse.Namespace) -> int:
        """Run the application with given arguments"""
        try:
            engine = self.build_engine(args)
            self.logger.info(f"Vortex Wine prefix: {engine.runtime.prefix}")
            report = engine.run(self.build_options(args))
        except KeyboardInterrupt:
            self.logger.warning("Interrupted, stopping. Run again to repair any half-made link.")
            return EXIT_INTERRUPTED
        except LinkerError as e:
            self.logger.debug(f"Fatal: {e!r}")
            print(f"❌ {e}")
            return EXIT_FATAL

        print(report.render(verbose=args.verbose))
        return report.exit_code


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser"""
    parser = argparse.ArgumentParser(
        prog="lvlinker",
        description="Link Steam library games into the Vortex Wine prefix",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                               # Link previously selected games (asks on first run)
  %(prog)s -d                            # Show what would be done
  %(prog)s -b -w ~/Games/vortex          # Back up, then link into another prefix
  %(prog)s -p /mnt/games/SteamLibrary    # Also scan an extra Steam library
  %(prog)s --reselect                    # Choose the games again
  %(prog)s -a                            # Add more games to the saved selection
  %(prog)s --non-interactive --select 489830   # Link a game without prompting
        """
    )

    parser.add_argument("-d", "--dry-run", action="store_true",
                        help="Show what would be done without changing anything")
    parser.add_argument("-b", "--backup", action="store_true",
                        help="Back up the affected prefix folders before linking")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show debug output and every action taken")
    parser.add_argument("-p", "--path", action="append", default=[], metavar="PATH",
                        help="Additional Steam library root (repeatable)")
    parser.add_argument("-w", "--wine", metavar="PREFIX",
                        help="Vortex Wine prefix (default from settings, ~/.vortex_wine)")
    parser.add_argument("-t", "--target", metavar="DIR",
                        help="Directory to create the game links in "
                             "(default <prefix>/drive_c/Program Files (x86)/Steam/steamapps/common)")
    parser.add_argument("--reselect", action="store_true",
                        help="Forget the saved game selection and choose again")
    parser.add_argument("-a", "--add-games", action="store_true",
                        help="Choose more games to add to the saved selection")
    parser.add_argument("--select", action="append", default=[], metavar="ID",
                        help="Add a game to the selection by AppID (repeatable)")
    parser.add_argument("--exclude-id", action="append", default=[], metavar="ID",
                        help="Never offer or link this AppID (repeatable)")
    parser.add_argument("--non-interactive", action="store_true",
                        help="Never prompt; unresolved questions skip the game")
    parser.add_argument("--offline", action="store_true",
                        help="Do not look up game names on the Steam store")
    parser.add_argument("--refresh-names", action="store_true",
                        help="Ignore cached game names and look them up again")
    parser.add_argument("--no-registry", action="store_true",
                        help="Do not write Vortex gameRegistry entries")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__} ({__version_date__})")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(verbose=args.verbose)

    # Create and run application
    app = LinkerApp()
    return app.run(args)


if __name__ == "__main__":
    sys.exit(main())
