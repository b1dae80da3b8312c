"""Static asset build for the Rustodon UI.

Three independent tasks produce the files the application serves:

    css     style/style.scss        -> static/style.css (+ .map)
    js      static/js/accessibility.js -> static/js/accessibility.min.js
    icons   static/icons.svg        -> static/icons.min.svg (optional)

Tasks share no inputs or outputs, so they run concurrently. The build only
succeeds if every selected task does.

Usage:
    python -m webharness.assets --root .
    python -m webharness.assets css js
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import rjsmin
import sass
from scour import scour

from webharness.errors import AssetBuildError

logger = logging.getLogger(__name__)

STYLE_SOURCE = Path("style") / "style.scss"
STYLE_OUTPUT = Path("static") / "style.css"
SCRIPT_SOURCE = Path("static") / "js" / "accessibility.js"
ICON_SOURCE = Path("static") / "icons.svg"


def minified_name(path: Path) -> Path:
    """accessibility.js -> accessibility.min.js"""
    return path.with_name(f"{path.stem}.min{path.suffix}")


def compile_styles(root: Path) -> List[Path]:
    """Compile the SCSS entry point into a compressed stylesheet and source map."""
    source = root / STYLE_SOURCE
    output = root / STYLE_OUTPUT
    source_map = output.with_name(output.name + ".map")
    try:
        css, css_map = sass.compile(
            filename=str(source),
            output_style="compressed",
            source_map_filename=str(source_map),
            output_filename_hint=str(output),
        )
    except (sass.CompileError, OSError) as e:
        raise AssetBuildError(f"Failed to compile {source}: {e}") from e

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(css, encoding="utf-8")
    source_map.write_text(css_map, encoding="utf-8")
    logger.info("Compiled %s -> %s", source, output)
    return [output, source_map]


def minify_script(root: Path) -> List[Path]:
    """Minify the accessibility script, writing it next to the source."""
    source = root / SCRIPT_SOURCE
    output = minified_name(source)
    try:
        script = source.read_text(encoding="utf-8")
    except OSError as e:
        raise AssetBuildError(f"Failed to read {source}: {e}") from e

    output.write_text(rjsmin.jsmin(script), encoding="utf-8")
    logger.info("Minified %s -> %s", source, output)
    return [output]


def optimize_icons(root: Path) -> List[Path]:
    """Optimise the SVG icon sprite."""
    source = root / ICON_SOURCE
    output = minified_name(source)
    try:
        sprite = source.read_text(encoding="utf-8")
    except OSError as e:
        raise AssetBuildError(f"Failed to read {source}: {e}") from e

    options = scour.generateDefaultOptions()
    options.strip_comments = True
    options.remove_metadata = True
    output.write_text(scour.scourString(sprite, options), encoding="utf-8")
    logger.info("Optimised %s -> %s", source, output)
    return [output]


TASKS: Dict[str, Callable[[Path], List[Path]]] = {
    "css": compile_styles,
    "js": minify_script,
    "icons": optimize_icons,
}


def default_tasks(root: Path) -> List[str]:
    """Every task, with icons only when the sprite exists."""
    names = ["css", "js"]
    if (root / ICON_SOURCE).exists():
        names.append("icons")
    return names


async def _run_tasks(root: Path, names: Sequence[str]) -> Dict[str, List[Path]]:
    results = await asyncio.gather(
        *(asyncio.to_thread(TASKS[name], root) for name in names),
        return_exceptions=True,
    )
    failures = [
        f"{name}: {result}"
        for name, result in zip(names, results)
        if isinstance(result, BaseException)
    ]
    if failures:
        raise AssetBuildError("Asset build failed:\n  " + "\n  ".join(failures))
    return dict(zip(names, results))


def build(root: Path, names: Optional[Sequence[str]] = None) -> Dict[str, List[Path]]:
    """Run the selected tasks concurrently and return the files each produced.

    Raises:
        AssetBuildError: If any task failed. The other tasks still run to
            completion first.
        ValueError: For an unknown task name.
    """
    names = default_tasks(root) if names is None else list(names)
    unknown = [name for name in names if name not in TASKS]
    if unknown:
        raise ValueError(f"Unknown asset task(s): {', '.join(unknown)}")
    return asyncio.run(_run_tasks(root, names))


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Build Rustodon static assets")
    parser.add_argument(
        "tasks",
        nargs="*",
        help=f"Tasks to run, any of: {', '.join(TASKS)} "
        "(default: css, js, and icons when a sprite exists)",
    )
    parser.add_argument(
        "--root", type=Path, default=Path.cwd(), help="Project root (default: cwd)"
    )
    parser.add_argument(
        "--no-icons", action="store_true", help="Skip the icon sprite even if present"
    )
    args = parser.parse_args(argv)
    unknown = [name for name in args.tasks if name not in TASKS]
    if unknown:
        parser.error(f"unknown task(s): {', '.join(unknown)}")

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    names = args.tasks or default_tasks(args.root)
    if args.no_icons:
        names = [name for name in names if name != "icons"]
    if not names:
        parser.error("no tasks left to run")

    try:
        outputs = build(args.root, names)
    except AssetBuildError as e:
        logger.error("%s", e)
        return 1

    for name, paths in outputs.items():
        print(f"✓ {name}: {', '.join(str(path) for path in paths)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
