import sys
import argparse
import random
import re
import string
from abc import ABC, abstractmethod
from itertools import repeat
from typing import Callable, Iterable, List, Optional, Tuple

DEFAULT_KEY = 13
KEY_SEPARATOR = "/"

# Keys are truncated to 32 bits before seeding the random cipher
SEED_MASK = 0xFFFFFFFF
RAND_BITS = 31

# Stands in for the character dropped in the misalignment demo
SKIP_MARKER = "█"

PROMPT_LINES = (
    "Enter plaintext, if not added key will default to 13.",
    "To add a custom key, end your plaintext with /XX, where XX is a valid positive number.",
    "Only lower case text will be translated, upper case text will be converted. "
    "Non-space punctuation will be skipped.",
)

# Verbose mode (disabled by default, enabled with --verbose)
VERBOSE = False

def log_info(msg: str):
    """Print info message only if verbose mode is enabled."""
    if VERBOSE:
        print(f"[INFO] {msg}", file=sys.stderr)

def log_warn(msg: str):
    """Print warning message only if verbose mode is enabled."""
    if VERBOSE:
        print(f"[WARN] {msg}", file=sys.stderr)

# ==========================================
#  ERRORS
# ==========================================

class CipherInputError(ValueError):
    """Raised when a line of user input cannot be turned into text and key."""

class InvalidKeyFormat(CipherInputError):
    pass

class EmptyInput(CipherInputError):
    pass

# ==========================================
#  CORE: Alphabet & Rotation
# ==========================================

SPACE = " "
ALPHABET: Tuple[str, ...] = tuple(string.ascii_lowercase) + (SPACE,)
_POSITIONS = {symbol: pos for pos, symbol in enumerate(ALPHABET)}

def alphabet_size(include_spaces: bool) -> int:
    """Number of symbols that take part in rotation (27 with spaces, 26 without)."""
    return len(ALPHABET) if include_spaces else len(ALPHABET) - 1

def _participates(symbol: str, include_spaces: bool) -> bool:
    if symbol == SPACE:
        return include_spaces
    return symbol in _POSITIONS

def rotate_forward(symbol: str, rotation: int, include_spaces: bool) -> str:
    """
    Rotate a single character forward through the alphabet.

    Anything that is not a lowercase letter (or a space, when spaces are
    included) comes back unchanged.
    """
    if not _participates(symbol, include_spaces):
        return symbol
    size = alphabet_size(include_spaces)
    rotation %= size
    return ALPHABET[(_POSITIONS[symbol] + rotation) % size]

def rotate_backward(symbol: str, rotation: int, include_spaces: bool) -> str:
    """Inverse of rotate_forward for the same rotation and space setting."""
    if not _participates(symbol, include_spaces):
        return symbol
    size = alphabet_size(include_spaces)
    rotation %= size
    pos = _POSITIONS[symbol]
    if pos < rotation:
        pos = size - (rotation - pos)
    else:
        pos -= rotation
    return ALPHABET[pos]

def _rotate_all(text: str, rotations: Iterable[int], forward: bool, include_spaces: bool) -> str:
    rotate = rotate_forward if forward else rotate_backward
    return "".join(rotate(c, r, include_spaces) for c, r in zip(text, rotations))

def cipher(text: str, key: int, forward: bool, include_spaces: bool) -> str:
    """Position-dependent rotation: the character at index i moves by key + i."""
    return _rotate_all(text, (key + i for i in range(len(text))), forward, include_spaces)

def rot_cipher(text: str, key: int, forward: bool, include_spaces: bool) -> str:
    """Constant rotation: every character moves by key."""
    return _rotate_all(text, repeat(key), forward, include_spaces)

def rand_cipher(text: str, key: int, forward: bool, include_spaces: bool,
                rng_factory: Callable[[int], random.Random] = random.Random) -> str:
    """
    Pseudo-random rotation: a generator seeded with the key supplies one
    rotation amount per character, pass-through characters included.

    A new generator is built for every call, so decoding with the same key
    replays the same sequence. The stream is only reproducible within one
    Python implementation and offers no real secrecy.
    """
    rng = rng_factory(key & SEED_MASK)
    draws = (rng.getrandbits(RAND_BITS) for _ in range(len(text)))
    return _rotate_all(text, draws, forward, include_spaces)

# ==========================================
#  FRAMEWORK: Abstract Base Class & Registry
# ==========================================

class CipherStrategy(ABC):
    """Abstract base class for every demonstrated cipher variant."""

    label = "??"
    title = ""
    include_spaces = True

    @property
    @abstractmethod
    def name(self) -> str:
        """The command-line name for this cipher."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description for help text."""
        pass

    @abstractmethod
    def transform(self, text: str, key: int, forward: bool) -> str:
        pass

    def encode(self, text: str, key: int = DEFAULT_KEY) -> str:
        return self.transform(text, key, True)

    def decode(self, text: str, key: int = DEFAULT_KEY) -> str:
        return self.transform(text, key, False)

CIPHER_REGISTRY = {}

def register_cipher(cls):
    """Decorator to auto-register ciphers."""
    cipher_obj = cls()
    CIPHER_REGISTRY[cipher_obj.name] = cipher_obj
    return cls

@register_cipher
class RotaryCipher(CipherStrategy):
    name = "rot"
    label = "Rn"
    title = "Rotary cipher without spaces"
    description = "Shifts every letter by the key. Spaces are left alone."
    include_spaces = False

    def transform(self, text: str, key: int, forward: bool) -> str:
        return rot_cipher(text, key, forward, self.include_spaces)

@register_cipher
class RotarySpacesCipher(RotaryCipher):
    name = "rots"
    label = "Rs"
    title = "Rotary cipher with spaces"
    description = "Shifts every letter and space by the key over a 27-symbol alphabet."
    include_spaces = True

@register_cipher
class IndexCipher(CipherStrategy):
    name = "index"
    label = "Ix"
    title = "Rotary cipher with index"
    description = "Shifts each character by the key plus its position in the text."

    def transform(self, text: str, key: int, forward: bool) -> str:
        return cipher(text, key, forward, self.include_spaces)

@register_cipher
class RandomCipher(CipherStrategy):
    name = "rand"
    label = "Ra"
    title = "Random cipher"
    description = "Shifts each character by a key-seeded pseudo-random amount (not portable)."

    def transform(self, text: str, key: int, forward: bool) -> str:
        return rand_cipher(text, key, forward, self.include_spaces)

# ==========================================
#  INPUT: Key Suffix & Case Folding
# ==========================================

_KEY_PATTERN = re.compile(r"[0-9]+")
_FOLD_TABLE = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

def parse_key(raw: str) -> int:
    """Parse a non-negative decimal key. Signs, spaces and trailing junk are rejected."""
    if not _KEY_PATTERN.fullmatch(raw):
        raise InvalidKeyFormat(f"Unable to parse key {raw!r}; expected a non-negative integer.")
    return int(raw)

def parse_input(line: str) -> Tuple[str, int]:
    """
    Split a line of input into (text, key).

    An optional trailing "/<number>" overrides DEFAULT_KEY and is stripped from
    the text. Only the last separator counts.
    """
    if not line:
        raise EmptyInput("No plaintext entered.")

    text, sep, suffix = line.rpartition(KEY_SEPARATOR)
    if not sep:
        return line, DEFAULT_KEY
    return text, parse_key(suffix)

def fold_case(text: str) -> str:
    """Lowercase ASCII letters only; everything else is left as-is."""
    return text.translate(_FOLD_TABLE)

def prompt_for_input(read: Callable[[], str] = input, write: Callable[[str], None] = print) -> Tuple[str, int]:
    """Prompt until a non-empty line is entered, then parse it."""
    while True:
        for line in PROMPT_LINES:
            write(line)
        try:
            return parse_input(read())
        except EmptyInput:
            log_info("Empty input, prompting again.")

def stream_reader(stream) -> Callable[[], str]:
    """
    Wrap a text stream as an input()-style reader: one line per call, line
    ending stripped, EOFError once the stream is exhausted.
    """
    lines = iter(stream)

    def read() -> str:
        try:
            return next(lines).rstrip("\r\n")
        except StopIteration:
            raise EOFError("end of input") from None

    return read

# ==========================================
#  DEMONSTRATION REPORT
# ==========================================

def examine(strategy: CipherStrategy, text: str, key: int) -> str:
    """Encrypt TEXT, then show a correct and two broken decryptions of it."""
    enc = strategy.encode(text, key)
    wrong_key = key - 1
    if wrong_key < 0:
        log_warn(f"Wrong-key demo uses negative key {wrong_key}; it is reduced modulo the alphabet "
                 "and does not match unsigned wraparound (2**64 - 1).")

    lines = [
        f"{strategy.title} examples:",
        "Input:",
        f"\t{text}",
        f"Encrypted form (using key {key}):",
        f"{strategy.label}.0\t{enc}",
        "Output:",
        f"{strategy.label}.1\t{strategy.decode(enc, key)}\tCorrect Decryption.",
        f"{strategy.label}.2\t{strategy.decode(enc, wrong_key)}"
        f"\tIncorrect decryption - Wrong key ({wrong_key}).",
        f"{strategy.label}.3\t{SKIP_MARKER}{strategy.decode(enc[1:], key)}"
        "\tIncorrect decryption - Skipped first letter.",
        "",
    ]
    return "\n".join(lines) + "\n"

def demonstrate(text: str, key: int, names: Optional[List[str]] = None) -> str:
    """Run examine() over the selected ciphers, in registry order."""
    selected = [c for n, c in CIPHER_REGISTRY.items() if names is None or n in names]
    return "".join(examine(c, text, key) for c in selected)

# ==========================================
#  CLI LOGIC
# ==========================================

def list_ciphers():
    """Print all available ciphers and exit."""
    print("\nAvailable Ciphers:")
    print("=" * 60)
    for name, strategy in CIPHER_REGISTRY.items():
        spaces = "spaces" if strategy.include_spaces else "  ----"
        print(f"  {name:<8} [{strategy.label}] [{spaces}]  {strategy.description}")
    print("=" * 60)
    print(f"\nTotal: {len(CIPHER_REGISTRY)} cipher(s) registered.")


def read_source(args) -> Tuple[str, int]:
    """Obtain (text, key) from --text, --input, piped stdin or the prompt."""
    if args.text is not None:
        return parse_input(args.text)
    # Non-interactive sources skip blank lines without echoing the prompt
    if args.input:
        try:
            f = open(args.input, "r", encoding="utf-8")
        except FileNotFoundError:
            sys.exit(f"Error: File '{args.input}' not found.")
        with f:
            return prompt_for_input(stream_reader(f), write=lambda _: None)
    if not sys.stdin.isatty():
        return prompt_for_input(stream_reader(sys.stdin), write=lambda _: None)
    return prompt_for_input(input)


def main(argv: Optional[List[str]] = None):
    global VERBOSE

    parser = argparse.ArgumentParser(
        description="Rotation cipher demonstrator: constant, indexed and random rotations "
                    "over a 27-symbol alphabet (a-z and space).",
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument("--version", action="version", version="%(prog)s 1.0")

    method_help = "\n".join(f"  {k:<8}: {v.description}" for k, v in CIPHER_REGISTRY.items())
    parser.add_argument("-m", "--method", choices=list(CIPHER_REGISTRY.keys()),
                        help=f"Restrict to one cipher (default: all for the demo, rot for -e/-d).\n{method_help}")

    action_group = parser.add_mutually_exclusive_group()
    action_group.add_argument("-e", "--encode", action="store_true", help="Encode only, print the ciphertext")
    action_group.add_argument("-d", "--decode", action="store_true", help="Decode only, print the plaintext")
    action_group.add_argument("-l", "--list", action="store_true", help="List all available ciphers")

    parser.add_argument("-k", "--key", metavar="N",
                        help=f"Cipher key (default: {DEFAULT_KEY}, or the /N suffix of the input)")

    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable verbose output (info and warning messages)")

    io_group = parser.add_mutually_exclusive_group()
    io_group.add_argument("-t", "--text", help="Direct text input (may end with /N to set the key)")
    io_group.add_argument("-i", "--input", help="Input file path (first non-empty line is used)")

    parser.add_argument("-o", "--output", help="Output file path")

    args = parser.parse_args(argv)
    VERBOSE = args.verbose

    if args.list:
        list_ciphers()
        sys.exit(0)

    # 1. READ INPUT
    try:
        text, key = read_source(args)
        if args.key is not None:
            key = parse_key(args.key)
            log_info(f"Using key {key} from --key.")
        else:
            log_info(f"Using key {key}.")
    except InvalidKeyFormat as e:
        sys.exit(f"Error: {e} Aborting.")
    except EmptyInput as e:
        sys.exit(f"Error: {e}")
    except EOFError:
        sys.exit("Error: Input ended before any plaintext was entered.")
    except KeyboardInterrupt:
        sys.exit(0)

    folded = fold_case(text)
    if folded != text:
        log_info("Upper case input converted to lower case.")

    # 2. RUN CIPHERS
    if args.encode or args.decode:
        strategy = CIPHER_REGISTRY[args.method or "rot"]
        log_info(f"{'Encoding' if args.encode else 'Decoding'} with '{strategy.name}'.")
        result = strategy.transform(folded, key, args.encode)
    else:
        names = [args.method] if args.method else None
        log_info(f"Demonstrating: {', '.join(names or CIPHER_REGISTRY)}")
        result = demonstrate(folded, key, names)

    # 3. WRITE OUTPUT (the demo report already ends with a newline)
    if args.encode or args.decode:
        result += "\n"

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(result)
        except OSError as e:
            sys.exit(f"Error writing output: {e}")
        log_info(f"Wrote result to {args.output}")
    else:
        print(result, end="")

if __name__ == "__main__":
    main()
