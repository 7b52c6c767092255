#!/usr/bin/env python3
r"""
Generate a C++ header declaring a file's contents as a constexpr constant.

Text mode (default) emits a string constant:

    constexpr const char* sym = "escaped text";

Binary mode emits a byte array:

    #include <array>
    #include <cstdint>
    constexpr std::array<std::uint8_t,2> sym{0x41,0x42};

Usage:
    python3 generate_cpp_from_file.py -i shader.glsl
    python3 generate_cpp_from_file.py -i logo.png -b -n assets -o logo.hpp
"""
import argparse
import os
import re
import sys
from pathlib import Path

__version__ = "0.1.0"

HEADER_SUFFIX = ".hpp"

LINE_ENDINGS = {
    "lf": "\n",
    "crlf": "\r\n",
}
NATIVE_LINE_ENDING = LINE_ENDINGS["crlf"] if sys.platform == "win32" else LINE_ENDINGS["lf"]

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


class InvalidTextEncoding(ValueError):
    """Input bytes for text mode are not valid UTF-8."""

    def __init__(self, offset: int, reason: str):
        super().__init__(f"invalid UTF-8 at byte offset {offset}: {reason}")
        self.offset = offset
        self.reason = reason


class InvalidIdentifier(ValueError):
    pass


def escape_char(ch: str) -> str:
    """Return C++-escaped representation of a single character."""
    if ch == "\t":
        return "\\t"
    elif ch == "\r":
        return "\\r"
    elif ch == "\n":
        return "\\n"
    elif ch == "\\":
        return "\\\\"
    elif ch == "'":
        return "\\'"
    elif ch == '"':
        return "\\\""
    elif 0x20 <= ord(ch) <= 0x7E:
        return ch
    else:
        # delimited universal character name, e.g. \u{e9}
        return f"\\u{{{ord(ch):x}}}"


def format_as_binary(data: bytes) -> str:
    """Format bytes as an initializer list body: 0x41,0x42"""
    return ",".join(f"{b:#x}" for b in data)


def format_as_text(data: bytes) -> str:
    """Format UTF-8 bytes as a string literal body (without the quotes)."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidTextEncoding(e.start, e.reason) from e
    return "".join(escape_char(ch) for ch in text)


def _open_namespace(namespace) -> str:
    return f"namespace {namespace}{{" if namespace is not None else ""


def _close_namespace(namespace) -> str:
    return "}" if namespace is not None else ""


def generate_array_source(array_contents: str, array_len: int, symbol_name: str,
                          namespace=None, line_ending: str = NATIVE_LINE_ENDING) -> str:
    out = []
    out.append("#include <array>" + line_ending)
    out.append("#include <cstdint>" + line_ending)
    out.append(_open_namespace(namespace))
    out.append(f"constexpr std::array<std::uint8_t,{array_len}> {symbol_name}{{{array_contents}}};")
    out.append(_close_namespace(namespace))
    out.append(line_ending)
    return "".join(out)


def generate_string_source(string_contents: str, symbol_name: str,
                           namespace=None, line_ending: str = NATIVE_LINE_ENDING) -> str:
    out = []
    out.append(_open_namespace(namespace))
    out.append(f"constexpr const char* {symbol_name} = \"{string_contents}\";")
    out.append(_close_namespace(namespace))
    out.append(line_ending)
    return "".join(out)


def generate_source(data: bytes, symbol_name: str, namespace=None, binary: bool = False,
                    line_ending: str = NATIVE_LINE_ENDING) -> str:
    """Format data and wrap it in a declaration for the selected mode.

    Raises InvalidTextEncoding in text mode if data is not UTF-8.
    """
    if binary:
        return generate_array_source(format_as_binary(data), len(data), symbol_name,
                                     namespace, line_ending)
    return generate_string_source(format_as_text(data), symbol_name, namespace, line_ending)


def derive_symbol_name(filename: str) -> str:
    """Replace every character that is not an ASCII letter or digit with '_'."""
    return "".join(ch if ch.isascii() and ch.isalnum() else "_" for ch in filename)


def default_output_path(cwd, filename: str) -> Path:
    """Replace the last extension of filename (possibly empty, as in 'foo.') with .hpp.

    A leading dot does not start an extension, so '.bashrc' becomes '.bashrc.hpp'.
    """
    i = filename.rfind(".")
    stem = filename[:i] if i > 0 else filename
    return Path(cwd, stem + HEADER_SUFFIX)


def is_identifier(name: str, nested: bool = False) -> bool:
    """Check name against C++ identifier syntax.

    With nested=True, '::'-separated names (a::b::c) are accepted as well.
    """
    parts = name.split("::") if nested else [name]
    return all(_IDENTIFIER_RE.match(part) for part in parts)


def validate_names(symbol_name: str, namespace=None):
    if not is_identifier(symbol_name):
        raise InvalidIdentifier(f"invalid symbol name \"{symbol_name}\"")
    if namespace is not None and not is_identifier(namespace, nested=True):
        raise InvalidIdentifier(f"invalid namespace \"{namespace}\"")


def read_input(path) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def create_output(path):
    """Open a new file at path for binary writing.

    Raises FileExistsError instead of truncating an existing file. Binary mode
    keeps the generated line endings untranslated.
    """
    return open(path, "xb")


def _input_filename(path: Path):
    name = path.name
    if not name or name in (".", ".."):
        return None
    return name


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="generate-cpp-from-file",
        description="Generate a C++ header declaring a file's contents as a constexpr constant.",
    )
    ap.add_argument("-i", "--input-path", required=True, type=Path, help="Input file path")
    ap.add_argument("-o", "--output-path", type=Path,
                    help=f"Output file path (default: input filename with {HEADER_SUFFIX} "
                         "in the current directory)")
    ap.add_argument("-s", "--symbol-name", help="Name of the C++ symbol (default: derived from the input filename)")
    ap.add_argument("-n", "--namespace", help="Namespace in which to put the symbol")
    ap.add_argument("-b", "--binary", action="store_true",
                    help="Operate in binary mode as opposed to text mode (default: text mode)")
    ap.add_argument("--line-ending", choices=["native", "lf", "crlf"], default="native",
                    help="Line terminator for the generated file (default: native)")
    ap.add_argument("--strict-identifiers", action="store_true",
                    help="Reject symbol and namespace names that are not valid C++ identifiers")
    ap.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def _fail(message: str) -> int:
    print(message, file=sys.stderr)
    return 1


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    input_path = args.input_path

    try:
        exists = input_path.exists()
        is_file = exists and input_path.is_file()
    except OSError:
        # e.g. EACCES on a parent directory
        exists = is_file = False

    if not exists:
        return _fail(f"file path \"{input_path}\" does not exist")
    if not is_file:
        return _fail(f"file path \"{input_path}\" is not a file")

    try:
        cwd = os.getcwd()
    except OSError:
        return _fail("environment's current working directory is unavailable")

    input_filename = _input_filename(input_path)
    if input_filename is None:
        return _fail(f"input file path \"{input_path}\" does not contain a valid filename")

    output_path = args.output_path
    if output_path is None:
        output_path = default_output_path(cwd, input_filename)

    symbol_name = args.symbol_name
    if symbol_name is None:
        symbol_name = derive_symbol_name(input_filename)

    if args.strict_identifiers:
        try:
            validate_names(symbol_name, args.namespace)
        except InvalidIdentifier as e:
            return _fail(str(e))

    line_ending = NATIVE_LINE_ENDING if args.line_ending == "native" else LINE_ENDINGS[args.line_ending]

    try:
        data = read_input(input_path)
    except OSError as e:
        return _fail(f"failed to read input file: {e}")

    try:
        out_src = generate_source(data, symbol_name, args.namespace, args.binary, line_ending)
    except InvalidTextEncoding as e:
        return _fail(f"input file is not valid UTF-8 text: {e}")

    # undecodable -s/-n bytes arrive as surrogates; reject before creating the file
    try:
        out_bytes = out_src.encode("utf-8")
    except UnicodeEncodeError as e:
        return _fail(f"symbol or namespace name is not valid UTF-8: {e}")

    try:
        f = create_output(output_path)
    except OSError as e:
        return _fail(f"failed to open output file for writing: {e}")
    with f:
        try:
            f.write(out_bytes)
        except OSError as e:
            return _fail(f"failed to write to output file: {e}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
