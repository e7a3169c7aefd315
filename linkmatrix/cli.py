"""CLI entry point for the link matrix."""

import argparse
import logging
import sys
from pathlib import Path

from linkmatrix import report
from linkmatrix.folders import decompose
from linkmatrix.matrix import build_matrix


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Adjacency matrix of a markdown vault")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--config", type=Path, default=None, help="Path to a YAML config file")
    sub = parser.add_subparsers(dest="command")

    # render command
    render_parser = sub.add_parser("render", help="Render the matrix and save it as a PNG")
    render_parser.add_argument("vault", help="Path to the vault folder")
    render_parser.add_argument(
        "--output-dir", type=Path, default=None,
        help="Save here instead of the configured export folder inside the vault",
    )

    # stats command
    stats_parser = sub.add_parser("stats", help="Show link counts")
    stats_parser.add_argument("vault", help="Path to the vault folder")
    stats_parser.add_argument("--top", type=int, default=10, help="How many busy documents to list")

    # squares command
    squares_parser = sub.add_parser("squares", help="Show folder squares per depth")
    squares_parser.add_argument("vault", help="Path to the vault folder")
    squares_parser.add_argument("--depth", type=int, default=None, help="Only this depth")

    # links command
    links_parser = sub.add_parser("links", help="Show one document's links")
    links_parser.add_argument("vault", help="Path to the vault folder")
    links_parser.add_argument("name", help="Document path or name")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if args.command == "render":
            path = report.export_vault_image(
                args.vault, config_path=args.config, output_dir=args.output_dir,
            )
            print(f"Saved {path}")

        elif args.command == "stats":
            stats = report.vault_stats(args.vault, args.config, top=args.top)
            print(
                f"{stats['documents']} documents, {stats['links']} links "
                f"(density {stats['density']:.4f}, {stats['self_links']} self-links, "
                f"{stats['unlinked_documents']} without outgoing links)"
            )
            busiest = stats["busiest_sources"]
            if busiest:
                print("\nMost outgoing links:")
                for row in busiest:  # type: ignore[union-attr]
                    print(f"  {row['outgoing']:>4}  {row['path']}")

        elif args.command == "squares":
            graph, _ = report.open_vault(args.vault, args.config)
            matrix = build_matrix(graph)
            rows = report.folder_square_rows(matrix, decompose(matrix.documents), depth=args.depth)
            if not rows:
                print("No folder squares.")
            for row in rows:
                print(f"  depth {row['depth']}  [{row['start']:>4}..{row['end']:>4}]  {row['folder']}")

        elif args.command == "links":
            graph, _ = report.open_vault(args.vault, args.config)
            links = report.document_links(build_matrix(graph), args.name)
            print(links["document"])
            print(f"\nOutgoing ({len(links['outgoing'])}):")  # type: ignore[arg-type]
            for path in links["outgoing"]:  # type: ignore[union-attr]
                print(f"  -> {path}")
            print(f"\nIncoming ({len(links['incoming'])}):")  # type: ignore[arg-type]
            for path in links["incoming"]:  # type: ignore[union-attr]
                print(f"  <- {path}")

    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
