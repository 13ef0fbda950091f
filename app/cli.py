import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from app.backend.process import CommitPolicy, process_file, write_json_output
from intake.config import get_settings
from intake.errors import FormatError, PersistenceError
from intake.extractors import AUTO, ExtractorRegistry
from intake.logger import set_level

EXIT_OK = 0
EXIT_BLOCKED = 1
EXIT_FORMAT = 2


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import a policy spreadsheet and report normalised records and row errors."
    )
    parser.add_argument(
        "--input",
        required=True,
        help="Spreadsheet to import (.xlsx, .xls or .csv).",
    )
    parser.add_argument(
        "--format",
        default=AUTO,
        choices=[AUTO] + ExtractorRegistry().formats(),
        help="Source format; detected from the workbook by default.",
    )
    parser.add_argument(
        "--store",
        default=None,
        help="JSON store snapshot to reconcile against (and commit into).",
    )
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory to write the result JSON.",
    )
    parser.add_argument(
        "--commit",
        default=CommitPolicy.NEVER.value,
        choices=[p.value for p in CommitPolicy],
        help="Write results back to the store: never, if-clean (no row errors) or always.",
    )
    parser.add_argument(
        "--profile-path",
        default=None,
        help="Path to a profile YAML file with alias and default overrides.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    set_level("debug" if args.verbose else get_settings().INTAKE_LOG_LEVEL)

    try:
        output = process_file(
            file_path=args.input,
            store_path=args.store,
            source_format=args.format,
            commit=CommitPolicy(args.commit),
            profile_path=args.profile_path,
        )
    except FormatError as exc:
        print(f"[error] {exc.message}")
        return EXIT_FORMAT
    except FileNotFoundError as exc:
        print(f"[error] {exc}")
        return EXIT_FORMAT
    except PersistenceError as exc:
        print(f"[error] {exc.message}")
        return EXIT_BLOCKED

    json_path = write_json_output(output, args.output_dir)
    summary = output["result"]["summary"]
    print("JSON:", json_path)
    print(
        f"{summary['source_format']}: {summary['policyholders']} policyholders "
        f"({summary['inserted']} new, {summary['updated']} updated), "
        f"{summary['payments']} payments, {summary['errors']} errors, {summary['warnings']} warnings"
    )
    for issue in output["result"]["errors"]:
        print(f"  [{issue['kind']}] {issue['sheet']} row {issue['row']}: {issue['message']}")
    if output["blocked"]:
        print("[warn] commit skipped because of row errors")
        return EXIT_BLOCKED
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
