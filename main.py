"""
Entry point: inspect and maintain takeoff attributes in DXF drawings.

Usage:
    python main.py reconcile <drawing.dxf|folder> [--chunk-size N] [--ceiling N] [--output OUT]
    python main.py parts <drawing.dxf> <handle>
    python main.py components <drawing.dxf>
    python main.py workpoint <drawing.dxf> [--set X Y Z] [--marker] [--output OUT]
    python main.py copy-workpoint <source.dxf> <target.dxf> [--output OUT]
    python main.py elevations <drawing.dxf>
    python main.py init-config [path]

Examples:
    python main.py reconcile tower.dxf --chunk-size 200
    python main.py workpoint tower.dxf --set 0 0 0 --marker
    python main.py --config project.takeoff.json reconcile drawings/ --recursive

Exit codes: 0 success, 1 skipped entities / missing record / load error,
2 unexpected error.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ezdxf.lldxf.const import DXFStructureError

from takeoff_bridge.batch import reconcile_document, reconcile_folder
from takeoff_bridge.errors import AttributeStoreError, CorruptPayload, NamespaceNotRegistered
from takeoff_bridge.host.dxf_store import DxfRecordStore
from takeoff_bridge.logging_config import setup_logging
from takeoff_bridge.project_config import (
    CONFIG_FILENAME,
    ProjectConfig,
    create_sample_config,
    load_config,
)
from takeoff_bridge.records.component import components_with_attachments, read_component_info
from takeoff_bridge.records.elevations import load_elevation_definitions
from takeoff_bridge.records.parts import read_parts
from takeoff_bridge.records.workpoint import (
    add_work_point_marker,
    copy_work_point,
    get_work_point,
    store_work_point,
)
from takeoff_bridge.xdata.codec import ChunkCodec
from takeoff_bridge.xdata.document_store import DocumentAttributeStore
from takeoff_bridge.xdata.entity_store import EntityAttributeStore

logger = logging.getLogger("takeoff_bridge.cli")


class RecordMissing(Exception):
    """The drawing holds no record of the requested kind."""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_reconcile(args: argparse.Namespace, config: ProjectConfig) -> int:
    storage = config.storage
    codec = ChunkCodec(
        chunk_size=storage.chunk_size if args.chunk_size is None else args.chunk_size,
        ceiling=storage.chunk_ceiling if args.ceiling is None else args.ceiling,
    )
    layout = storage.parts_layout()
    dxftype = config.drawing.component_entity or None

    drawing = Path(args.drawing)
    if drawing.is_dir():
        if args.output:
            raise ValueError("--output applies to a single drawing, not a folder")
        reports = reconcile_folder(
            drawing, recursive=args.recursive,
            layout=layout, codec=codec, dxftype=dxftype,
        )
        skipped = 0
        for path, report in reports.items():
            print(f"{path}: {report.reconciled}/{report.total} reconciled")
            skipped += report.skipped
        return 1 if skipped else 0

    store = DxfRecordStore.open(drawing)
    report = reconcile_document(store, layout, codec, dxftype)
    store.save(args.output or drawing)
    print(report.summary())
    return 1 if report.skipped else 0


def cmd_parts(args: argparse.Namespace, config: ProjectConfig) -> int:
    store = DxfRecordStore.open(args.drawing)
    entity = store.entity(args.handle)
    if entity is None:
        raise RecordMissing(f"No entity with handle {args.handle}")

    layout = config.storage.parts_layout()
    entity_store = EntityAttributeStore(store, config.storage.codec())
    entity_store.registry.require(layout.marker_namespace)

    info = read_component_info(store, entity, layout.marker_namespace)
    if info is None:
        raise RecordMissing(f"Entity {args.handle} is not a metal component")
    parts = read_parts(entity_store, entity, layout)

    print(json.dumps({
        "Handle": args.handle.upper(),
        "ComponentType": info.component_type,
        "Floor": info.floor,
        "Elevation": info.elevation,
        "Parts": [p.to_dict() for p in parts],
    }, indent=2))
    return 0


def cmd_components(args: argparse.Namespace, config: ProjectConfig) -> int:
    store = DxfRecordStore.open(args.drawing)
    entity_store = EntityAttributeStore(store, config.storage.codec())
    components = components_with_attachments(
        entity_store,
        config.drawing.component_entity or None,
        config.storage.parts_layout(),
    )
    print(json.dumps([c.to_dict() for c in components], indent=2))
    return 0


def cmd_workpoint(args: argparse.Namespace, config: ProjectConfig) -> int:
    store = DxfRecordStore.open(args.drawing)
    doc_store = DocumentAttributeStore(store)

    if args.set is None:
        point = get_work_point(doc_store)
        if point is None:
            raise RecordMissing("Drawing has no work point")
        print(f"{point.x} {point.y} {point.z}")
        return 0

    point = store_work_point(doc_store, args.set)
    if args.marker:
        add_work_point_marker(store.doc, point)
    store.save(args.output or args.drawing)
    return 0


def cmd_copy_workpoint(args: argparse.Namespace, config: ProjectConfig) -> int:
    source = DxfRecordStore.open(args.source)
    target_path = Path(args.target)
    if target_path.exists():
        target = DxfRecordStore.open(target_path)
    else:
        logger.info("Creating %s (%s)", target_path, config.drawing.dxf_version)
        target = DxfRecordStore.new(config.drawing.dxf_version)

    if not copy_work_point(DocumentAttributeStore(source), DocumentAttributeStore(target)):
        raise RecordMissing(f"{args.source} has no work point")
    target.save(args.output or target_path)
    return 0


def cmd_elevations(args: argparse.Namespace, config: ProjectConfig) -> int:
    store = DxfRecordStore.open(args.drawing)
    definitions = load_elevation_definitions(DocumentAttributeStore(store))
    print(json.dumps([d.to_dict() for d in definitions], indent=2))
    return 0


def cmd_init_config(args: argparse.Namespace, config: ProjectConfig) -> int:
    create_sample_config(args.path)
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Inspect and maintain takeoff attributes in DXF drawings.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help=f"Path to a {CONFIG_FILENAME} configuration file.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log at DEBUG level.",
    )
    parser.add_argument(
        "--json-log",
        default=None,
        dest="json_log",
        help="Also write JSON-lines logs to this file.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("reconcile", help="Re-chunk metal part lists.")
    p.add_argument("drawing", help="DXF file or folder of DXF files.")
    p.add_argument("--chunk-size", type=int, default=None, dest="chunk_size",
                   help="Characters per chunk (default: from config, 250).")
    p.add_argument("--ceiling", type=int, default=None,
                   help="Maximum chunks per record (default: from config, 20).")
    p.add_argument("--output", "-o", default=None,
                   help="Output DXF (default: overwrite the input). Single drawing only.")
    p.add_argument("--recursive", "-r", action="store_true",
                   help="Search subfolders when DRAWING is a folder.")
    p.set_defaults(func=cmd_reconcile)

    p = sub.add_parser("parts", help="Print a component's part list as JSON.")
    p.add_argument("drawing")
    p.add_argument("handle", help="Entity handle (hex).")
    p.set_defaults(func=cmd_parts)

    p = sub.add_parser("components", help="Print all components with lengths and attachments.")
    p.add_argument("drawing")
    p.set_defaults(func=cmd_components)

    p = sub.add_parser("workpoint", help="Show or set the drawing's work point.")
    p.add_argument("drawing")
    p.add_argument("--set", type=float, nargs=3, metavar=("X", "Y", "Z"), default=None)
    p.add_argument("--marker", action="store_true",
                   help="Draw a crosshair on the WORKPOINTS layer.")
    p.add_argument("--output", "-o", default=None)
    p.set_defaults(func=cmd_workpoint)

    p = sub.add_parser("copy-workpoint", help="Copy the work point to another drawing.")
    p.add_argument("source")
    p.add_argument("target", help="Target DXF; created if missing.")
    p.add_argument("--output", "-o", default=None)
    p.set_defaults(func=cmd_copy_workpoint)

    p = sub.add_parser("elevations", help="Print elevation definitions as JSON.")
    p.add_argument("drawing")
    p.set_defaults(func=cmd_elevations)

    p = sub.add_parser("init-config", help="Write a sample configuration file.")
    p.add_argument("path", nargs="?", default=CONFIG_FILENAME)
    p.set_defaults(func=cmd_init_config)

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    drawing = getattr(args, "drawing", None) or getattr(args, "source", None)
    config = load_config(drawing_path=drawing, explicit_config=args.config)

    setup_logging(
        level=logging.DEBUG if args.verbose else config.logging.level_number(),
        json_file=args.json_log or config.logging.json_file or None,
    )

    try:
        return args.func(args, config)
    except (RecordMissing, NamespaceNotRegistered, CorruptPayload) as exc:
        logger.error("%s", exc)
        return 1
    except (IOError, DXFStructureError) as exc:
        logger.critical("Failed to load drawing: %s", exc)
        return 1
    except ValueError as exc:
        logger.critical("Configuration error: %s", exc)
        return 1
    except AttributeStoreError as exc:
        logger.critical("Storage error: %s", exc, exc_info=True)
        return 2
    except Exception as exc:
        logger.critical("Unexpected error: %s", exc, exc_info=True)
        return 2


if __name__ == "__main__":
    sys.exit(main())
