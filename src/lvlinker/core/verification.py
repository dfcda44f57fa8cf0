"""
Link verification
Checks that a linked directory is usable from the host and, when possible, from Wine
"""

import os
from pathlib import Path
from typing import Optional

from lvlinker.core.models import VerificationReport
from lvlinker.core.wine_runtime import WineProbe
from lvlinker.utils.logger import get_logger


logger = get_logger(__name__)


def verify(target_path: Path, probe: Optional[WineProbe] = None) -> VerificationReport:
    """
    Verify a link target

    Host side: existence, symlink target, listing and entry count, and the
    read/write/execute permissions (reported individually). With a probe the
    same path is also listed through Wine and a sentinel file is round-tripped.
    An empty directory is reported as a problem, never raised.

    Args:
        target_path: The link (or copied directory) inside the prefix
        probe: Wine probe, or None to check from the host only

    Returns:
        VerificationReport; report.passed tells whether the link is usable
    """
    target_path = Path(target_path)
    report = VerificationReport(target_path=target_path)
    report.is_symlink = target_path.is_symlink()

    if report.is_symlink:
        report.link_target_exists = Path(os.path.realpath(target_path)).exists()
        if not report.link_target_exists:
            report.problems.append(f"symlink target does not exist: {os.readlink(target_path)}")

    if not target_path.exists():
        report.problems.append("target is missing or inaccessible")
        logger.warning(f"Verification: {target_path} is missing or inaccessible")
        return report

    try:
        report.entry_count = len(os.listdir(target_path))
        listed = True
    except OSError as e:
        report.problems.append(f"cannot list directory: {e}")
        listed = False

    report.accessible = listed and report.link_target_exists is not False
    report.read = os.access(target_path, os.R_OK)
    report.write = os.access(target_path, os.W_OK)
    report.execute = os.access(target_path, os.X_OK)
    for permission, granted in (("read", report.read), ("write", report.write), ("execute", report.execute)):
        if not granted:
            report.problems.append(f"no {permission} permission")

    if listed and report.entry_count == 0:
        report.problems.append("directory is empty (the link is probably broken)")
        logger.warning(f"Verification: {target_path} is empty")

    if probe is not None:
        _verify_through_wine(report, probe)

    logger.debug(
        f"Verified {target_path}: accessible={report.accessible} entries={report.entry_count} "
        f"r={report.read} w={report.write} x={report.execute}"
        + (f" wine_entries={report.runtime_entry_count} roundtrip={report.runtime_roundtrip}"
           if report.runtime_checked else "")
    )
    return report


def _verify_through_wine(report: VerificationReport, probe: WineProbe):
    report.runtime_checked = True
    report.runtime_entry_count = probe.list_entries(report.target_path)
    report.runtime_listable = report.runtime_entry_count is not None

    if not report.runtime_listable:
        report.problems.append("Wine cannot list the directory")
        report.runtime_roundtrip = False
        return

    if report.runtime_entry_count != report.entry_count:
        logger.debug(
            f"Wine sees {report.runtime_entry_count} entries in {report.target_path}, host sees {report.entry_count}"
        )

    report.runtime_roundtrip = probe.roundtrip(report.target_path)
    if not report.runtime_roundtrip:
        report.problems.append("test file written through Wine was not visible on the host")
