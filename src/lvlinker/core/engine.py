"""
Linking engine
Runs the whole pipeline: scan, name, select, locate, back up, link, register, verify
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import requests

from lvlinker.core.actions import ActionRecorder
from lvlinker.core.backup import BackupManager
from lvlinker.core.choice_provider import ChoiceProvider, NonInteractiveChoiceProvider
from lvlinker.core.directory_locator import DirectoryLocator
from lvlinker.core.errors import DirectoryNotFound, LinkStrategyExhausted, NoItemsFound, VerificationFailed
from lvlinker.core.library_scanner import LibraryScanner
from lvlinker.core.link_strategies import build_strategies
from lvlinker.core.linker import AuxiliaryLink, AuxiliaryLinker, Linker
from lvlinker.core.metadata_resolver import MetadataResolver
from lvlinker.core.models import InstalledItem, ItemMetadata, ItemOutcome, ItemStatus, StrategyKind
from lvlinker.core.name_cache import NameCache
from lvlinker.core.report import RunReport
from lvlinker.core.selection_store import SelectionStore
from lvlinker.core.verification import verify
from lvlinker.core.wine_runtime import WineProbe, WineRuntime
from lvlinker.utils.logger import get_logger
from lvlinker.utils.settings_manager import SettingsManager
from lvlinker.utils.steam_utils import SteamUtils


VORTEX_STEAM_COMMON = Path("drive_c") / "Program Files (x86)" / "Steam" / "steamapps" / "common"


@dataclass
class RunOptions:
    """Per-run overrides, normally filled from the command line"""
    dry_run: bool = False
    backup: bool = False
    library_paths: List[Path] = field(default_factory=list)
    target_dir: Optional[Path] = None
    reselect: bool = False
    add_games: bool = False
    select_ids: List[str] = field(default_factory=list)
    exclude_ids: List[str] = field(default_factory=list)
    offline: bool = False
    refresh_names: bool = False
    write_registry: Optional[bool] = None  # None = use settings


@dataclass
class ItemPlan:
    """What will be done for one located game"""
    item: InstalledItem
    name: str
    source_dir: Path
    target_parent: Path
    aux_links: List[AuxiliaryLink] = field(default_factory=list)

    @property
    def basename(self) -> str:
        return self.source_dir.name


class LinkingEngine:
    """Links the selected Steam games into the Vortex Wine prefix"""

    def __init__(self,
                 settings: Optional[SettingsManager] = None,
                 choice_provider: Optional[ChoiceProvider] = None,
                 runtime: Optional[WineRuntime] = None,
                 session: Optional[requests.Session] = None,
                 steam_utils: Optional[SteamUtils] = None,
                 selection_store: Optional[SelectionStore] = None,
                 name_cache: Optional[NameCache] = None,
                 documents_dir: Optional[Path] = None):
        self.logger = get_logger(__name__)
        self.settings = settings or SettingsManager()
        self.choice_provider = choice_provider or NonInteractiveChoiceProvider()
        self.runtime = runtime or WineRuntime(
            self.settings.get_wine_prefix(),
            self.settings.get_wine_command(),
            self.settings.get_runtime_timeout(),
        )
        self.session = session
        self.steam_utils = steam_utils or SteamUtils()
        self.selection_store = selection_store or SelectionStore()
        self.name_cache = name_cache or NameCache(max_age=self.settings.get_name_cache_max_age())
        self.documents_dir = documents_dir
        self.scanner = LibraryScanner()

    def library_roots(self, options: RunOptions) -> List[Path]:
        """Default Steam roots, then configured extra libraries, then --path arguments"""
        roots: List[Path] = []
        for root in (self.steam_utils.get_steam_roots()
                     + self.settings.get_extra_library_paths()
                     + [Path(p).expanduser() for p in options.library_paths]):
            if root not in roots:
                roots.append(root)
        return roots

    def target_parent(self, options: RunOptions) -> Path:
        if options.target_dir is not None:
            return Path(options.target_dir).expanduser()
        return self.runtime.prefix / VORTEX_STEAM_COMMON

    def run(self, options: RunOptions) -> RunReport:
        """
        Run the pipeline once

        Args:
            options: Per-run options

        Returns:
            RunReport with one outcome per selected game

        Raises:
            NoLibraryFound: No Steam library exists
            NoItemsFound: No (non-reserved) game is installed
            BackupFailed: A requested backup could not be written
        """
        report = RunReport(dry_run=options.dry_run)
        if options.dry_run:
            self.logger.info("DRY RUN MODE - No changes will be made")

        scan = self.scanner.scan(self.library_roots(options))
        reserved = set(self.settings.get_reserved_app_ids()) | {str(i) for i in options.exclude_ids}
        items = {app_id: item for app_id, item in scan.items.items() if app_id not in reserved}
        if not items:
            raise NoItemsFound("Every installed game is excluded (see reserved_app_ids and --exclude-id)")
        excluded = sorted(set(scan.items) & reserved)
        if excluded:
            self.logger.info(f"Excluding reserved AppID(s): {', '.join(excluded)}")

        cache = self.name_cache
        if options.refresh_names:
            cache = NameCache(self.name_cache.cache_dir, max_age=0)
        resolver = MetadataResolver(
            cache,
            items=items,
            session=self.session,
            timeout=self.settings.get_lookup_timeout(),
            workers=self.settings.get_lookup_workers(),
            offline=options.offline,
        )

        selected, names = self._select(items, resolver, options)
        if not selected:
            self.logger.warning("No games selected, nothing to do")
            return report

        locator = DirectoryLocator(self.choice_provider)
        plans: List[ItemPlan] = []
        for app_id in selected:
            metadata = names.get(app_id)
            display_name = metadata.display_name if metadata else None
            item = items.get(app_id)
            if item is None:
                reason = "excluded" if app_id in reserved else "not installed in any scanned Steam library"
                self.logger.warning(f"Skipping {app_id}: {reason}")
                report.outcomes.append(ItemOutcome(app_id, display_name or "Unknown", ItemStatus.SKIPPED,
                                                   detail=reason))
                continue

            try:
                located = locator.locate(item, display_name, scan.roots_used)
            except DirectoryNotFound as e:
                self.logger.warning(str(e))
                report.outcomes.append(ItemOutcome(app_id, display_name or "Unknown", ItemStatus.SKIPPED,
                                                   detail=str(e)))
                continue

            name = display_name or located.path.name
            self.logger.info(f"Found {name} (ID: {app_id}) at {located.path} [{located.strategy}]")
            plans.append(ItemPlan(item, name, located.path, self.target_parent(options)))

        available = self.runtime.is_available()
        if not available:
            self.logger.warning(
                f"Wine prefix {self.runtime.prefix} is not usable with '{self.runtime.wine_command}'; "
                "junctions, registry entries and Wine-side checks are disabled"
            )
        probe = WineProbe(self.runtime) if available else None
        linker = Linker(
            build_strategies(self.settings.get_link_strategies(), self.runtime, probe),
            dry_run=options.dry_run,
        )
        aux_linker = AuxiliaryLinker(linker, self.runtime.prefix, self.settings.get_prefix_user(), self.documents_dir)

        for plan in plans:
            plan.aux_links = aux_linker.find(plan.item.app_id, plan.name, plan.basename, plan.item.library_roots)

        if options.backup and plans:
            self._backup(plans, options, report)

        register = options.write_registry
        if register is None:
            register = self.settings.should_write_registry_entries()
        register = register and available

        outcomes: Dict[str, ItemOutcome] = {}
        for plan in plans:
            app_id = plan.item.app_id
            try:
                outcomes[app_id] = self._process(plan, linker, aux_linker, probe, register, options.dry_run)
            except Exception as e:
                self.logger.exception(f"Unexpected error while linking {plan.name} (ID: {app_id})")
                outcomes[app_id] = ItemOutcome(app_id, plan.name, ItemStatus.FAILED, source_dir=plan.source_dir,
                                               detail=f"unexpected error: {e}")

        # Keep the selection order in the report
        skipped = {outcome.app_id: outcome for outcome in report.outcomes}
        report.outcomes = [outcomes.get(app_id) or skipped[app_id] for app_id in selected]
        return report

    def _select(self, items: Dict[str, InstalledItem], resolver: MetadataResolver,
                options: RunOptions) -> Tuple[List[str], Dict[str, Optional[ItemMetadata]]]:
        """Work out which games to link and resolve the names needed for that"""
        if options.reselect:
            self.selection_store.clear()

        stored = self.selection_store.load()
        requested = [str(app_id) for app_id in options.select_ids]
        for app_id in requested:
            if app_id not in items:
                self.logger.warning(f"--select {app_id}: not an installed game")

        if options.add_games:
            offered = [app_id for app_id in items if app_id not in stored]
            if not offered:
                self.logger.info("Every installed game is already selected")
        elif not stored and not requested:
            offered = list(items)
        else:
            offered = []

        wanted = list(dict.fromkeys(stored + requested + offered))
        names = resolver.resolve_all(app_id for app_id in wanted if app_id in items)

        chosen: List[str] = []
        if offered:
            options_text = []
            for app_id in offered:
                metadata = names.get(app_id)
                options_text.append(f"{metadata.display_name if metadata else 'Unknown game'} (ID: {app_id})")
            title = ("Select more games to add:" if options.add_games
                     else "Select the games to link into the Vortex prefix:")
            indices = self.choice_provider.choose_many(title, options_text)
            chosen = [offered[index] for index in indices]
        chosen += [app_id for app_id in requested if app_id in items and app_id not in chosen]

        new_ids = self.selection_store.record(chosen)
        if new_ids:
            self.logger.info(f"Remembering selection: {', '.join(new_ids)}")

        selected = list(dict.fromkeys(stored + chosen))
        return selected, names

    def _backup(self, plans: List[ItemPlan], options: RunOptions, report: RunReport):
        paths = []
        for plan in plans:
            paths.append(plan.target_parent)
            paths.extend(aux.target_parent for aux in plan.aux_links)

        recorder = ActionRecorder(options.dry_run)
        manager = BackupManager(self.settings.get_backup_dir())
        report.backup_path = manager.backup(paths, recorder)
        report.backup_actions = list(recorder.actions)

    def _process(self, plan: ItemPlan, linker: Linker, aux_linker: AuxiliaryLinker,
                 probe: Optional[WineProbe], register: bool, dry_run: bool) -> ItemOutcome:
        app_id = plan.item.app_id
        outcome = ItemOutcome(app_id, plan.name, ItemStatus.FAILED, source_dir=plan.source_dir)
        self.logger.info(f"Linking {plan.name} (ID: {app_id})...")

        try:
            link = linker.link(plan.source_dir, plan.target_parent, plan.basename, app_id)
        except LinkStrategyExhausted as e:
            self.logger.error(str(e))
            outcome.detail = str(e)
            return outcome

        outcome.link = link
        outcome.actions.extend(link.actions)
        self.logger.info(f"Linked {plan.name} via {link.strategy_used.value}: {link.target_path}")

        aux_results, warnings = aux_linker.link_all(plan.aux_links, app_id)
        for result in aux_results:
            outcome.actions.extend(result.actions)
        outcome.warnings.extend(warnings)

        if register:
            recorder = ActionRecorder(dry_run)
            problems = self.runtime.register_vortex_game(app_id, plan.name, link.target_path, recorder)
            outcome.actions.extend(recorder.actions)
            for problem in problems:
                self.logger.warning(f"{plan.name}: {problem}")
            outcome.warnings.extend(problems)

        if dry_run:
            outcome.status = ItemStatus.PLANNED
            return outcome

        report = verify(link.target_path, probe)
        outcome.verification = report
        link.verified = report.passed
        if not report.passed:
            outcome.status = ItemStatus.DEGRADED
            outcome.detail = str(VerificationFailed(str(link.target_path), report.problems))
            self.logger.warning(outcome.detail)
        elif link.strategy_used is StrategyKind.COPY:
            outcome.status = ItemStatus.COPIED
        else:
            outcome.status = ItemStatus.LINKED
        return outcome
