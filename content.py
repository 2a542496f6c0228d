import argparse
import os
import sys
from typing import List, Optional

# One line of the test file: lowercase alphabet, digits, newline (37 bytes).
TEST_PATTERN = b"abcdefghijklmnopqrstuvwxyz0123456789\n"
TEST_REPEAT = 1000
TEST_FILENAME = "test.txt"


def build_test_content(pattern: bytes = TEST_PATTERN, repeat: int = TEST_REPEAT) -> bytes:
    """Return the download payload: ``pattern`` repeated ``repeat`` times."""
    if repeat < 0:
        raise ValueError("repeat must be >= 0")
    if not pattern:
        raise ValueError("pattern must not be empty")
    return pattern * repeat


def write_test_content(path: str, content: bytes, force: bool = False) -> None:
    """Write ``content`` to ``path``.

    Raises FileExistsError if the file exists and ``force`` is False.
    """
    if os.path.exists(path) and not force:
        raise FileExistsError(f"{path} already exists (use --force to overwrite)")
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="gtr2-test-content",
        description="Write the dev server's test.txt payload for byte-for-byte comparison",
    )
    p.add_argument("--out", default=TEST_FILENAME, help=f"Output path (default: {TEST_FILENAME})")
    p.add_argument(
        "--pattern",
        default=None,
        help="String to repeat (default: lowercase alphabet + digits + newline)",
    )
    p.add_argument(
        "--repeat",
        type=int,
        default=TEST_REPEAT,
        help=f"Number of repetitions (default: {TEST_REPEAT})",
    )
    p.add_argument("--force", action="store_true", help="Overwrite an existing file")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    pattern = args.pattern.encode("utf-8") if args.pattern is not None else TEST_PATTERN
    try:
        data = build_test_content(pattern, args.repeat)
        write_test_content(args.out, data, force=args.force)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    print(f"Wrote {len(data)} bytes to {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
