#!/usr/bin/env python3
"""QAForge - LLM-Powered GUI and API Test Generation.

Commands:
    generate    Inspect an application and generate GUI and API test suites
    analyze     Score saved test suites for quality and coverage
    init        Create a default configuration file
"""

import argparse
import json
import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("qaforge")


def _load_config(args, url=None):
    """Load configuration, falling back to defaults when a URL is given."""
    from qaforge.core.config import AppConfig, QAForgeConfig, load_config
    from qaforge.core.errors import ConfigError

    try:
        return load_config(args.config)
    except ConfigError as e:
        if url is None:
            raise
        logger.warning(f"{e}\nUsing default configuration")
        return QAForgeConfig(app=AppConfig(base_url=url))


def cmd_generate(args):
    """Generate test suites for an application."""
    from qaforge.agent import QAForgeAgent
    from qaforge.core.errors import QAForgeError
    from qaforge.reporting.store import format_coverage_summary, format_quality_summary

    try:
        config = _load_config(args, args.url)
    except QAForgeError as e:
        logger.error(str(e))
        return 1

    # Override with CLI args
    if args.complexity:
        config.generation.complexity = args.complexity
    if args.max_gui:
        config.generation.max_gui_tests = args.max_gui
    if args.max_api:
        config.generation.max_api_tests = args.max_api
    if args.no_edge_cases:
        config.generation.include_edge_cases = False
    if args.expanded_fallback:
        config.generation.expanded_fallback = True
    if args.focus:
        config.generation.focus = args.focus
    if args.output:
        config.output.tests_dir = args.output

    agent = QAForgeAgent(config)
    try:
        result = agent.generate(
            url=args.url,
            journey_path=args.journey,
            gui=not args.api_only,
            api=not args.gui_only,
            save=not args.dry_run
        )
    except QAForgeError as e:
        logger.error(f"Generation failed: {e}")
        return 1

    logger.info(f"\nGenerated {len(result.gui_cases)} GUI and {len(result.api_cases)} API test cases")
    if result.gui_quality:
        print(format_quality_summary(result.gui_quality, "GUI Test Quality"))
    if result.api_quality:
        print(format_quality_summary(result.api_quality, "API Test Quality"))
    print(format_coverage_summary(result.coverage))

    for path in result.saved_paths:
        logger.info(f"  Saved: {path}")

    return 0


def cmd_analyze(args):
    """Analyze saved test suites."""
    from qaforge.core.config import OutputConfig, load_config
    from qaforge.core.errors import ConfigError
    from qaforge.core.models import ApiTestCase, GuiTestCase
    from qaforge.quality.analyzer import QualityAnalyzer
    from qaforge.reporting.store import SuiteStore, format_coverage_summary, format_quality_summary

    try:
        output = load_config(args.config).output
    except ConfigError:
        output = OutputConfig()
    store = SuiteStore(args.tests_dir or output.tests_dir, output.reports_dir)

    def load(kind, path):
        try:
            return store.load_suite(kind, path)
        except FileNotFoundError:
            logger.warning(f"No {kind.upper()} suite found")
            return []
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Invalid {kind.upper()} suite: {e}")
            return []

    gui_cases: list[GuiTestCase] = load("gui", args.gui)
    api_cases: list[ApiTestCase] = load("api", args.api)
    if not gui_cases and not api_cases:
        logger.error("Nothing to analyze")
        return 1

    analyzer = QualityAnalyzer()
    gui_quality = analyzer.analyze_gui_test_quality(gui_cases) if gui_cases else None
    api_quality = analyzer.analyze_api_test_quality(api_cases) if api_cases else None
    coverage = analyzer.analyze_coverage_gaps(gui_cases, api_cases)

    if gui_quality:
        print(format_quality_summary(gui_quality, "GUI Test Quality"))
    if api_quality:
        print(format_quality_summary(api_quality, "API Test Quality"))
    print(format_coverage_summary(coverage))

    if args.save:
        path = store.save_quality_report(gui_quality, api_quality, coverage)
        logger.info(f"\nReport saved to: {path}")

    return 0


def cmd_init(args):
    """Create a default configuration file."""
    from qaforge.core.config import create_default_config

    create_default_config(args.url, args.output)
    logger.info(f"Configuration written to {args.output}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="QAForge - LLM-Powered GUI and API Test Generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to config YAML file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Generate command
    generate_parser = subparsers.add_parser("generate", help="Generate test suites")
    generate_parser.add_argument("url", nargs="?", help="Application URL (defaults to app.base_url)")
    generate_parser.add_argument("-j", "--journey", help="User journey file (.json, .yaml, .md, .txt)")
    generate_parser.add_argument(
        "--complexity",
        choices=["basic", "intermediate", "advanced"],
        help="Generation complexity"
    )
    generate_parser.add_argument("--max-gui", type=int, help="Maximum GUI test cases from the LLM")
    generate_parser.add_argument("--max-api", type=int, help="Maximum API test cases from the LLM")
    generate_parser.add_argument("--focus", nargs="+", help="Areas to focus on")
    generate_parser.add_argument("--gui-only", action="store_true", help="Only generate GUI tests")
    generate_parser.add_argument("--api-only", action="store_true", help="Only generate API tests")
    generate_parser.add_argument("--no-edge-cases", action="store_true", help="Skip rule-based edge cases")
    generate_parser.add_argument(
        "--expanded-fallback",
        action="store_true",
        help="Use the full fallback suite when the LLM output is unusable"
    )
    generate_parser.add_argument("-o", "--output", help="Directory for generated suites")
    generate_parser.add_argument("--dry-run", action="store_true", help="Do not write any files")

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyze saved test suites")
    analyze_parser.add_argument("--gui", help="GUI suite JSON (defaults to the latest)")
    analyze_parser.add_argument("--api", help="API suite JSON (defaults to the latest)")
    analyze_parser.add_argument("--tests-dir", help="Directory holding saved suites")
    analyze_parser.add_argument("--save", action="store_true", help="Save the quality report")

    # Init command
    init_parser = subparsers.add_parser("init", help="Create a default configuration file")
    init_parser.add_argument("url", help="Application URL")
    init_parser.add_argument("-o", "--output", default="qaforge.config.yaml", help="Config file path")

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.command:
        parser.print_help()
        return 1

    if getattr(args, "gui_only", False) and getattr(args, "api_only", False):
        parser.error("--gui-only and --api-only are mutually exclusive")

    commands = {
        "generate": cmd_generate,
        "analyze": cmd_analyze,
        "init": cmd_init,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
