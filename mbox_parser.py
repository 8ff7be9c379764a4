import argparse
import logging
import sys
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple
import tqdm
from os_utils import file_size_mb, validate_mbox_file

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_TOP_SENDERS = 10
PROGRESS_INTERVAL = 1000
MBOX_DELIMITER = 'From '
# Checked in order, first header yielding an address wins
SENDER_HEADERS = ('From', 'Return-Path', 'Sender')


@dataclass
class ScanResult:
    senders_count: Dict[str, int] = field(default_factory=dict)
    messages_processed: int = 0
    messages_skipped: int = 0


def _decode_line(raw: bytes) -> str:
    return raw.decode('utf-8', errors='replace').rstrip('\r\n')


def iter_message_blocks(stream: Iterable[bytes]) -> Iterator[List[str]]:
    """
    Split an mbox byte stream into raw message blocks.

    Every line starting with "From " opens a new block. The delimiter line is
    kept as the first line of its block. Archives without any delimiter are
    treated as a single message.
    """
    block = []
    for raw in stream:
        line = _decode_line(raw)
        if line.startswith(MBOX_DELIMITER) and block:
            yield block
            block = []
        block.append(line)

    if block:
        yield block


def iter_mbox(path: str) -> Iterator[List[str]]:
    with open(path, 'rb') as f:
        yield from iter_message_blocks(f)


def parse_headers(block: List[str]) -> List[Tuple[str, str]]:
    """Parse the header section of a block into (name, value) pairs, folding continuation lines."""
    headers = []
    lines = block[1:] if block and block[0].startswith(MBOX_DELIMITER) else block

    for line in lines:
        if not line.strip():
            break
        if line[0] in ' \t':
            if headers:
                name, value = headers[-1]
                headers[-1] = (name, f'{value} {line.strip()}'.strip())
            continue

        name, sep, value = line.partition(':')
        name = name.strip()
        # Not a header line, e.g. a stray body line or a broken header
        if not sep or not name or any(c.isspace() for c in name):
            continue
        headers.append((name, value.strip()))

    return headers


def extract_address(header_value: str) -> Optional[str]:
    """
    Pull an email address out of a raw header value.

    Handles "Name <user@example.com>", "<user@example.com>" and bare
    "user@example.com" values. Returns None when nothing address-like is found.
    """
    trimmed = header_value.strip()

    start = trimmed.rfind('<')
    end = trimmed.find('>', start + 1) if start != -1 else -1
    if start != -1 and end != -1:
        candidate = trimmed[start + 1:end].strip()
    else:
        tokens = trimmed.split()
        if tokens and '@' in tokens[0]:
            candidate = tokens[0]
        elif '@' in trimmed:
            candidate = trimmed
        else:
            return None

    candidate = candidate.lower()
    return candidate or None


def find_header(headers: List[Tuple[str, str]], name: str) -> Optional[str]:
    wanted = name.lower()
    for header_name, value in headers:
        if header_name.lower() == wanted:
            return value
    return None


def extract_sender(block: List[str]) -> Optional[str]:
    headers = parse_headers(block)
    return sender_from_headers(lambda name: find_header(headers, name))


def sender_from_headers(get_header: Callable[[str], Optional[str]]) -> Optional[str]:
    for header_name in SENDER_HEADERS:
        value = get_header(header_name)
        if value is None:
            continue
        sender_email = extract_address(str(value))
        if sender_email:
            return sender_email
    return None


def count_senders(blocks: Iterable[List[str]], progress_bar: bool = False,
                  progress_interval: int = PROGRESS_INTERVAL) -> ScanResult:
    senders_count = defaultdict(int)
    result = ScanResult()

    for block in tqdm.tqdm(blocks, unit='msg', disable=not progress_bar):
        sender_email = extract_sender(block)
        result.messages_processed += 1

        if sender_email is None:
            result.messages_skipped += 1
            logger.debug(f"Skipping message {result.messages_processed}: no sender found")
        else:
            senders_count[sender_email] += 1

        if result.messages_processed % progress_interval == 0:
            tqdm.tqdm.write(f"Processed {result.messages_processed} messages...")

    result.senders_count = dict(senders_count)
    return result


def rank_senders(senders_count: Dict[str, int], top_n: int = DEFAULT_TOP_SENDERS) -> List[Tuple[str, int]]:
    arr_counts = [(sender, count) for sender, count in senders_count.items()]
    # sort is stable, so ties keep first-seen order
    arr_counts.sort(key=lambda x: x[1], reverse=True)
    return arr_counts[:top_n]


def print_ranking(ranked: List[Tuple[str, int]], top_n: int) -> None:
    print(f'\n--- Top {top_n} Senders by Email Count ---')
    for rank, (email, count) in enumerate(ranked, 1):
        print(f'{rank:2d}. Count: {count:6d} | Sender: {email}')


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f'Expected a positive integer, got {value}')
    return number


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Scans an mbox archive and prints the senders with the most messages')

    parser.add_argument('mbox_path', help='Path to the mbox file to analyse')
    parser.add_argument('--top-n-senders', type=positive_int, default=DEFAULT_TOP_SENDERS,
                        help=f'Number of senders to output. Default: {DEFAULT_TOP_SENDERS}')
    parser.add_argument('--progress-bar', action='store_true',
                        help='Show a progress bar while scanning the archive.')
    parser.add_argument('--verbose', action='store_true',
                        help='Log every skipped message.')

    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logger.setLevel(logging.DEBUG)

    print('--- Starting MBOX Sender Analysis ---')
    print(f'Input MBOX file path: {args.mbox_path}')

    try:
        validate_mbox_file(args.mbox_path, logger)
        print(f'File confirmed. Size: {file_size_mb(args.mbox_path)} MB. Starting processing...')
        result = count_senders(iter_mbox(args.mbox_path), progress_bar=args.progress_bar)
    except FileNotFoundError as e:
        logger.error(f"MBOX file not found: {e}")
        print(f'FATAL ERROR: {e}', file=sys.stderr)
        return 1
    except OSError as e:
        logger.error(f"Failed to read MBOX file: {e}")
        print(f'FATAL ERROR: Could not access file. {e}', file=sys.stderr)
        return 1

    print(f'Total messages processed: {result.messages_processed}')
    logger.info(f"Skipped {result.messages_skipped} messages without a usable sender header")

    if not result.senders_count:
        print('No senders found. The MBOX file may be empty, or message headers might be severely corrupted.')
        return 0

    print_ranking(rank_senders(result.senders_count, args.top_n_senders), args.top_n_senders)
    print('\n--- Analysis Complete ---')
    return 0


if __name__ == '__main__':
    sys.exit(main())
