import argparse
import os
import sys

from typing import Callable, List, Optional
from codec import HuffmanCodec
from errors import HuffmanError


def get_parser():
    """Create and configure the CLI argument parser.

    :returns: Configured argument parser.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="huffpack",
        description="Static Huffman compressor for single files",
    )
    subparsers = parser.add_subparsers(
        title="subcommands", dest="cmd", required=True
    )

    compress = subparsers.add_parser(
        "compress", aliases=["c"], help="Compress a file"
    )
    compress.add_argument("input", help="File to compress")
    compress.add_argument("output", help="Compressed output file path")
    compress.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide the progress line",
    )

    decompress = subparsers.add_parser(
        "decompress", aliases=["d"], help="Decompress a file"
    )
    decompress.add_argument("input", help="Compressed file to read")
    decompress.add_argument("output", help="Restored output file path")
    decompress.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide the progress line",
    )

    return parser


def _print_progress(line: str) -> None:
    """Render and flush a single progress line in-place (carriage return).

    :param line: The textual progress line to display.
    :type line: str
    :returns: None
    :rtype: None
    """
    sys.stdout.write("\r" + line)
    sys.stdout.flush()


def _fmt_pct(done: int, total: int) -> str:
    """Format a completion percentage string like ``12.34%``.

    :param done: Units completed.
    :type done: int
    :param total: Total units to complete.
    :type total: int
    :returns: Percentage.
    :rtype: str
    """
    if total <= 0:
        return "0%"
    pct = 100.0 * (done / float(total))
    return f"{pct:6.2f}%"


def _fmt_bytes(n: int) -> str:
    """Format a byte count into a human-readable string.

    :param n: Number of bytes.
    :type n: int
    :returns: Human-readable string.
    :rtype: str
    """
    for unit in ['', 'Ki', 'Mi', 'Gi', 'Ti']:
        if abs(n) < 1024:
            return f"{n:.2f} {unit}B"
        n /= 1024
    return f"{n:.2f} PiB"


class Progress:
    """Callable progress reporter printing a single in-place line.

    Only redraws when the whole-percent value changes.

    :ivar label: Action label (e.g., "Compressing" or "Decompressing").
    :type label: str
    :ivar path: File name displayed next to the percentage.
    :type path: str
    """

    def __init__(self, label: str, path: str) -> None:
        self.label = label
        self.path = path
        self._last_reported = -1

    def __call__(self, done: int, total: int) -> None:
        """Update the progress display.

        :param done: Units processed so far.
        :type done: int
        :param total: Total units.
        :type total: int
        :returns: None
        :rtype: None
        """
        if total <= 0:
            return
        percent_bucket = int((done * 100) / total)
        if percent_bucket == self._last_reported:
            return
        self._last_reported = percent_bucket
        _print_progress(f"{self.label} {self.path}  {_fmt_pct(done, total)}")


def _read_input(path: str) -> bytes:
    """Read the whole file at ``path``.

    :param path: File to read.
    :type path: str
    :returns: File contents.
    :rtype: bytes
    :raises OSError: Passed through from the filesystem.
    """
    with open(path, "rb") as f:
        return f.read()


def _write_output(path: str, data: bytes) -> None:
    """Write ``data`` to ``path``, removing the file if the write fails.

    A file that could not be opened is left untouched; only a file this
    call opened and partially wrote is removed.

    :param path: Destination file.
    :type path: str
    :param data: Bytes to write.
    :type data: bytes
    :returns: None
    :rtype: None
    :raises OSError: Passed through from the filesystem.
    """
    out = open(path, "wb")
    try:
        with out:
            out.write(data)
    except OSError:
        os.remove(path)
        raise


def _run(
    label: str,
    action: Callable,
    input_path: str,
    output_path: str,
    hide_progress: bool,
) -> bytes:
    """Read ``input_path``, transform it and write ``output_path``.

    The output file is only opened after ``action`` has returned.
    """
    data = _read_input(input_path)
    on_prog: Optional[Progress] = None
    if not hide_progress:
        on_prog = Progress(label, os.path.basename(input_path))
    try:
        result = action(data, on_progress=on_prog)
    finally:
        if on_prog is not None:
            sys.stdout.write("\n")
            sys.stdout.flush()
    _write_output(output_path, result)
    return data


def compress_file(input_path: str, output_path: str, hide_progress: bool) -> None:
    """Compress ``input_path`` into ``output_path``.

    :param input_path: File to compress.
    :type input_path: str
    :param output_path: Destination of the container.
    :type output_path: str
    :param hide_progress: Whether to hide the progress line.
    :type hide_progress: bool
    :returns: None
    :rtype: None
    :raises HuffmanError: If the input cannot be compressed (e.g. it is empty).
    :raises OSError: If reading or writing fails.
    """
    data = _run(
        "Compressing", HuffmanCodec().compress,
        input_path, output_path, hide_progress,
    )
    compressed_size = os.path.getsize(output_path)
    print("Size before compression: ", _fmt_bytes(len(data)))
    print("Size after compression: ", _fmt_bytes(compressed_size))
    print(f"Compression ratio: {len(data) / compressed_size:.2f}")


def decompress_file(input_path: str, output_path: str, hide_progress: bool) -> None:
    """Restore the original file from the container at ``input_path``.

    :param input_path: Compressed file.
    :type input_path: str
    :param output_path: Destination of the restored bytes.
    :type output_path: str
    :param hide_progress: Whether to hide the progress line.
    :type hide_progress: bool
    :returns: None
    :rtype: None
    :raises HuffmanError: If the container is malformed or corrupt.
    :raises OSError: If reading or writing fails.
    """
    _run(
        "Decompressing", HuffmanCodec().decompress,
        input_path, output_path, hide_progress,
    )
    print(f"Decompressed {input_path} -> {output_path}")


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI tool.

    :param argv: Arguments without the program name; ``sys.argv[1:]`` if omitted.
    :type argv: Optional[List[str]]
    :returns: Process exit status.
    :rtype: int
    """
    parser = get_parser()
    args = parser.parse_args(argv)

    if args.cmd in ["compress", "c"]:
        operation, handler = "Compression", compress_file
    else:
        operation, handler = "Decompression", decompress_file

    try:
        handler(args.input, args.output, getattr(args, "no_progress", False))
    except FileNotFoundError as e:
        print(f"[!] {operation} failed: file not found: {e.filename}",
              file=sys.stderr)
        return 1
    except (HuffmanError, OSError) as e:
        print(f"[!] {operation} failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
