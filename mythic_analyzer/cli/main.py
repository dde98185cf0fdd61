"""
Mythic analyzer CLI.

Commands:
  analyze     Analyze a skill or mob YAML file
  groups      Show only the grouping proposals for a file
  similarity  Compare two template record files
  duplicates  Check a template record against existing records
  config      Show or change user configuration
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from mythic_analyzer.analysis import SkillAnalysisEngine, format_report
from mythic_analyzer.analysis.errors import ConfigError
from mythic_analyzer.analysis.pipeline import format_grouping
from mythic_analyzer.cli.spinner import StageSpinner
from mythic_analyzer.config import (
    get_config_path, load_config, load_user_settings, set_config_value,
)
from mythic_analyzer.templates import (
    calculate_similarity, find_differences, find_duplicates,
    load_template_records, record_from_group, record_from_unit,
)


def _fail(message: str):
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _read_text(path: str) -> str:
    file_path = Path(path)
    if not file_path.is_file():
        _fail(f"File not found: {path}")
    return file_path.read_text(encoding="utf-8")


def _external_names(args) -> set[str]:
    names = set(args.external or [])
    if getattr(args, "external_file", None):
        for line in _read_text(args.external_file).splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                names.add(line)
    return names


def _run_analysis(args):
    """Run the engine for analyze/groups; exits 1 on failure."""
    text = _read_text(args.file)
    try:
        analyzer_config, vocabulary = load_user_settings()
    except ConfigError as e:
        _fail(str(e))

    with StageSpinner("Analyzing", enabled=not args.json) as spinner:
        engine = SkillAnalysisEngine(
            config=analyzer_config,
            vocabulary=vocabulary,
            progress_fn=spinner.on_stage,
        )
        outcome = engine.analyze(
            text,
            context=args.context,
            external_names=_external_names(args),
        )

    if not outcome.success:
        if args.json:
            print(json.dumps(outcome.to_dict(), indent=2))
            sys.exit(1)
        _fail(outcome.error)
    return outcome


def analyze_cmd(args):
    """Full analysis report."""
    outcome = _run_analysis(args)
    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2))
    else:
        print(format_report(outcome.report, top=args.top))


def groups_cmd(args):
    """Grouping proposals only, optionally as template records."""
    outcome = _run_analysis(args)
    report = outcome.report

    if args.records:
        records = [record_from_group(g) for g in report.grouping.groups]
        records += [record_from_unit(u) for u in report.grouping.standalone]
        print(json.dumps([r.to_dict() for r in records], indent=2))
    elif args.json:
        print(json.dumps(report.grouping.to_dict(), indent=2))
    else:
        print("\n".join(format_grouping(report)).lstrip("\n"))


def _load_records(path: str):
    try:
        return load_template_records(Path(path))
    except ConfigError as e:
        _fail(str(e))


def _similarity_config():
    try:
        analyzer_config, _ = load_user_settings()
    except ConfigError as e:
        _fail(str(e))
    return analyzer_config.similarity


def similarity_cmd(args):
    """Compare the first record of two template files."""
    config = _similarity_config()
    first = _load_records(args.first)
    second = _load_records(args.second)
    if not first or not second:
        _fail("Both files must contain at least one template record")

    a, b = first[0], second[0]
    score = calculate_similarity(a, b, config)
    differences = find_differences(a, b)

    if args.json:
        print(json.dumps({
            "first": a.name,
            "second": b.name,
            "similarity": round(score, 4),
            "differences": differences,
        }, indent=2))
        return

    print(f"{a.name} vs {b.name}: {score:.0%} similar")
    for diff in differences:
        print(f"  - {diff}")


def duplicates_cmd(args):
    """Check every candidate record against a set of existing records."""
    config = _similarity_config()
    candidates = _load_records(args.candidate)
    existing = []
    for path in args.existing:
        existing.extend(_load_records(path))

    results = []
    for candidate in candidates:
        matches = find_duplicates(
            candidate, existing,
            threshold=args.threshold, limit=args.limit, config=config,
        )
        results.append((candidate, matches))

    if args.json:
        print(json.dumps([
            {"name": c.name, "duplicates": [m.to_dict() for m in matches]}
            for c, matches in results
        ], indent=2))
        return

    for candidate, matches in results:
        if not matches:
            print(f"{candidate.name}: no likely duplicates")
            continue
        print(f"{candidate.name}: {len(matches)} possible duplicate(s)")
        for match in matches:
            print(f"  {match.record.name} ({match.similarity:.0%})")
            for diff in match.differences:
                print(f"    - {diff}")


def config_show_cmd(args):
    config = load_config()
    print(f"# {get_config_path()}")
    if config:
        print(json.dumps(config, indent=2))
    else:
        print("(no user configuration)")


def config_set_cmd(args):
    try:
        set_config_value(args.key, args.value)
    except ConfigError as e:
        _fail(str(e))
    print(f"Set {args.key} in {get_config_path()}")


def config_cmd(args):
    if args.config_command == "set":
        config_set_cmd(args)
    else:
        config_show_cmd(args)


def build_parser():
    parser = argparse.ArgumentParser(
        description="Mythic analyzer - structural analysis of MythicMobs skill files"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Log progress (-v) or per-entry decisions (-vv) to stderr",
    )

    sub = parser.add_subparsers(dest="command")

    def add_analysis_args(p):
        p.add_argument("file", help="Skill or mob YAML file")
        p.add_argument(
            "--context",
            choices=["mob", "skillFile"],
            help="Force the document context instead of detecting it",
        )
        p.add_argument(
            "--external", "-e",
            nargs="+",
            metavar="NAME",
            help="Skill names defined in other files",
        )
        p.add_argument(
            "--external-file",
            help="File listing external skill names, one per line",
        )
        p.add_argument("--json", action="store_true", help="Output as JSON")

    # analyze
    analyze_parser = sub.add_parser("analyze", help="Analyze a skill or mob file")
    add_analysis_args(analyze_parser)
    analyze_parser.add_argument(
        "--top", type=int, default=5, help="Components listed per kind (default 5)"
    )
    analyze_parser.set_defaults(func=analyze_cmd)

    # groups
    groups_parser = sub.add_parser("groups", help="Show grouping proposals")
    add_analysis_args(groups_parser)
    groups_parser.add_argument(
        "--records",
        action="store_true",
        help="Print the template records the groups would be stored as",
    )
    groups_parser.set_defaults(func=groups_cmd)

    # similarity
    similarity_parser = sub.add_parser("similarity", help="Compare two template records")
    similarity_parser.add_argument("first", help="Template record file (YAML/JSON)")
    similarity_parser.add_argument("second", help="Template record file (YAML/JSON)")
    similarity_parser.add_argument("--json", action="store_true", help="Output as JSON")
    similarity_parser.set_defaults(func=similarity_cmd)

    # duplicates
    duplicates_parser = sub.add_parser(
        "duplicates", help="Find existing templates similar to a candidate"
    )
    duplicates_parser.add_argument("candidate", help="Candidate template file")
    duplicates_parser.add_argument("existing", nargs="+", help="Existing template files")
    duplicates_parser.add_argument(
        "--threshold", type=float,
        help="Minimum similarity (default: analyzer.similarity.duplicate_threshold, 0.5)"
    )
    duplicates_parser.add_argument(
        "--limit", type=int,
        help="Matches per candidate (default: analyzer.similarity.duplicate_limit, 3)"
    )
    duplicates_parser.add_argument("--json", action="store_true", help="Output as JSON")
    duplicates_parser.set_defaults(func=duplicates_cmd)

    # config
    config_parser = sub.add_parser("config", help="Show or change user configuration")
    config_sub = config_parser.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Print the user configuration")
    set_parser = config_sub.add_parser("set", help="Set a dotted key, e.g. analyzer.complexity.line_weight")
    set_parser.add_argument("key")
    set_parser.add_argument("value")
    config_parser.set_defaults(func=config_cmd)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)
    args.func(args)


if __name__ == "__main__":
    main()
