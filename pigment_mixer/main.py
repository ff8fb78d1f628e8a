"""
Main CLI Entry Point

물감 혼합 레시피 탐색 CLI 프로그램.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pigment_mixer.catalogue import (
    DEFAULT_DATABASE_URL,
    CatalogueError,
    PaintCatalogue,
    brand_display_name,
    load_paints_json,
)
from pigment_mixer.core.errors import MixingError, ReconstructionError, SearchError
from pigment_mixer.core.paint import Paint
from pigment_mixer.core.strategies import MixChoice
from pigment_mixer.core.target import TargetColor
from pigment_mixer.data.config_manager import ConfigManager
from pigment_mixer.pipeline import MixingPipeline
from pigment_mixer.schemas import LabColor, MixResponse, MixResultSchema, PaintPortion
from pigment_mixer.schemas import TestMixResponse as MixPreviewResponse
from pigment_mixer.visualizer import MixVisualizer


def setup_logging(debug: bool = False, stream=None):
    """로깅 설정 (기본 stdout)"""
    level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )

    logging.basicConfig(level=level, handlers=[handler], force=True)


def load_config(path: Optional[str]) -> ConfigManager:
    if path is None:
        return ConfigManager()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration not found: {config_path}")
    return ConfigManager(config_path)


def load_paints(args, config: ConfigManager, paint_ids: Optional[List[str]] = None) -> List[Paint]:
    """Paints from --paints-json, or from --brand in the catalogue database."""
    if args.paints_json:
        return load_paints_json(args.paints_json, paint_ids)

    if not args.brand:
        raise ValueError("Either --paints-json or --brand is required")

    database_url = args.database or config.get("catalogue.database_url", DEFAULT_DATABASE_URL)
    catalogue = PaintCatalogue(database_url)
    try:
        return catalogue.load_paints(args.brand, paint_ids)
    finally:
        catalogue.close()


def write_output(text: str, output: Optional[str]):
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
        logging.getLogger(__name__).info(f"Result saved to {output_path}")
    else:
        print(text)


def cmd_mix(args) -> int:
    """목표색에 대한 혼합 조합 탐색"""
    logger = logging.getLogger(__name__)

    config = load_config(args.config)
    if args.workers is not None:
        config.set("search.workers", args.workers)
    if args.top_k is not None:
        config.set("ranking.top_k", args.top_k)
    if args.delta_e:
        config.set("search.delta_e_method", args.delta_e)

    paints = load_paints(args, config, args.colors)
    choice = MixChoice.parse(args.strategy)
    target = TargetColor.parse(args.target)

    pipeline = MixingPipeline.from_config(config)
    results = pipeline.find_best_mixtures(target, paints, choice)

    if args.json:
        response = MixResponse(
            target_hex=target.hex,
            target_lab=LabColor(L=target.lab[0], a=target.lab[1], b=target.lab[2]),
            strategy=choice.label,
            delta_e_method=pipeline.search.config.delta_e_method,
            results=[MixResultSchema.from_result(r, rank) for rank, r in enumerate(results, start=1)],
        )
        write_output(response.model_dump_json(indent=2), args.output)
    else:
        print("\n" + "=" * 60)
        print("  Mixing Result")
        print("=" * 60)
        print(f"  Target:   {target.hex}  Lab({target.lab[0]:.1f}, {target.lab[1]:.1f}, {target.lab[2]:.1f})")
        print(f"  Strategy: {choice.label}")
        print(f"  Paints:   {len(paints)}")
        if not results:
            print("\n  No mixture found")
        for rank, result in enumerate(results, start=1):
            print(f"\n  #{rank}  {result.hex}  ΔE={result.error:.2f}")
            for pid, weight in zip(result.paint_ids, result.weights):
                print(f"    - {pid}: {weight:.1%}")
        print("=" * 60 + "\n")

    if args.plot:
        visualizer = MixVisualizer()
        fig = visualizer.plot_mixtures(
            target.resolve(pipeline.reconstructor), results, title=f"{target.hex} / {choice.label}"
        )
        visualizer.save_visualization(fig, Path(args.plot))
        logger.info(f"Plot saved to {args.plot}")

    return 0


def cmd_test_mix(args) -> int:
    """사용자가 입력한 혼합 비율의 결과색 계산"""
    config = load_config(args.config)

    entries = []
    for spec in args.paint:
        paint_id, sep, parts = spec.rpartition(":")
        if not sep or not paint_id:
            raise ValueError(f"Invalid --paint value {spec!r}; expected ID:PARTS")
        entries.append((paint_id, float(parts)))

    ids = [paint_id for paint_id, _ in entries]
    by_id = {paint.id: paint for paint in load_paints(args, config, ids)}
    missing = [paint_id for paint_id in ids if paint_id not in by_id]
    if missing:
        raise ValueError(f"Unknown paints: {', '.join(missing)}")

    paints = [by_id[paint_id] for paint_id in ids]
    parts = [p for _, p in entries]
    hex_color = MixingPipeline.from_config(config).test_mix(paints, parts)

    if args.json:
        total = sum(parts)
        response = MixPreviewResponse(
            paints=[PaintPortion(id=p.id, weight=w / total, hex=p.hex) for p, w in zip(paints, parts)],
            hex=hex_color,
        )
        write_output(response.model_dump_json(indent=2), None)
    else:
        print(hex_color)
    return 0


def cmd_brands(args) -> int:
    """데이터베이스의 브랜드 목록"""
    config = load_config(args.config)
    catalogue = PaintCatalogue(args.database or config.get("catalogue.database_url", DEFAULT_DATABASE_URL))
    try:
        brands = catalogue.list_brands()
    finally:
        catalogue.close()

    if not brands:
        print("No brands found")
    for brand in brands:
        print(f"{brand:45s} {brand_display_name(brand)}")
    return 0


def cmd_strategies(args) -> int:
    for choice in MixChoice:
        spec = choice.spec
        sizes = "/".join(str(len(spec.anchors) + n) for n in spec.extra_sizes)
        print(f"{choice.slug:28s} {choice.label} ({sizes} paints)")
    return 0


def _add_paint_source_args(parser: argparse.ArgumentParser):
    parser.add_argument("--paints-json", help="JSON paint catalogue path")
    parser.add_argument("--database", help=f"Catalogue database URL (default: {DEFAULT_DATABASE_URL})")
    parser.add_argument("--brand", help="Brand table name")
    parser.add_argument("--config", help="Mixer configuration JSON")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Spectral Paint Mixing Recipe Finder", formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # ========== mix 명령어 ==========
    mix_parser = subparsers.add_parser(
        "mix",
        help="Find paint mixtures for a target color",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pigment-mixer mix --target "#6b8e23" --brand michael_harding --database sqlite:///paints.db
  pigment-mixer mix --target "50,0,0" --paints-json paints.json --strategy no-black --json
        """,
    )
    mix_parser.add_argument("--target", required=True, help='Target color: "#rrggbb" or "L,a,b"')
    mix_parser.add_argument(
        "--strategy", default=MixChoice.BLACK_WHITE_2.slug, help="Mixing strategy (see 'strategies')"
    )
    _add_paint_source_args(mix_parser)
    mix_parser.add_argument("--colors", nargs="+", help="Restrict to these paint ids")
    mix_parser.add_argument("--top-k", type=int, help="Number of results")
    mix_parser.add_argument("--workers", type=int, help="Worker processes (default: CPU count)")
    mix_parser.add_argument("--delta-e", choices=["cie76", "cie94", "cie2000"], help="Reported error metric")
    mix_parser.add_argument("--json", action="store_true", help="Print JSON output")
    mix_parser.add_argument("--output", help="Write JSON output to file")
    mix_parser.add_argument("--plot", help="Save reflectance plot (PNG or PDF)")

    # ========== test-mix 명령어 ==========
    test_mix_parser = subparsers.add_parser("test-mix", help="Color of a given mixture")
    test_mix_parser.add_argument(
        "--paint", action="append", required=True, help="Paint and parts as ID:PARTS (repeatable)"
    )
    _add_paint_source_args(test_mix_parser)
    test_mix_parser.add_argument("--json", action="store_true", help="Print JSON output")

    # ========== brands / strategies ==========
    brands_parser = subparsers.add_parser("brands", help="List brands in the catalogue database")
    brands_parser.add_argument("--database", help="Catalogue database URL")
    brands_parser.add_argument("--config", help="Mixer configuration JSON")

    subparsers.add_parser("strategies", help="List mixing strategies")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """메인 함수"""
    parser = build_parser()
    args = parser.parse_args(argv)

    # JSON on stdout must stay parseable; logs move to stderr
    json_to_stdout = getattr(args, "json", False) and not getattr(args, "output", None)
    setup_logging(args.debug, sys.stderr if json_to_stdout else None)
    logger = logging.getLogger(__name__)

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "mix": cmd_mix,
        "test-mix": cmd_test_mix,
        "brands": cmd_brands,
        "strategies": cmd_strategies,
    }

    try:
        return commands[args.command](args)

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1

    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        return 1

    except ReconstructionError as e:
        logger.error(f"Unreachable target color: {e}")
        return 3

    except (SearchError, CatalogueError) as e:
        logger.error(f"Cannot search: {e}")
        return 2

    except MixingError as e:
        logger.error(f"Mixing error: {e}")
        return 2

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
