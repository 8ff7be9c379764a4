import email
import logging
import sys
from collections import defaultdict
import tqdm
from mbox_parser import (DEFAULT_TOP_SENDERS, PROGRESS_INTERVAL, iter_mbox, print_ranking, rank_senders,
                         sender_from_headers)
from os_utils import file_size_mb, validate_mbox_file

DEFAULT_MBOX_FILE = 'mail.mbox'
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def count_senders(filename, progress_interval=PROGRESS_INTERVAL):
	senders_count = defaultdict(int)

	for i, block in enumerate(iter_mbox(filename), 1):
		# parse each block on its own so a broken message is simply skipped
		try:
			msg = email.message_from_string('\n'.join(block))
			sender_email = sender_from_headers(msg.get)
		except Exception as e:
			logger.debug(f'Skipping message {i}: {e}')
			sender_email = None

		if sender_email is not None:
			senders_count[sender_email] += 1
		if i % progress_interval == 0:
			tqdm.tqdm.write(f'Processed {i} messages...')

	return dict(senders_count)


def main(argv=None):
	argv = sys.argv[1:] if argv is None else argv
	filename = argv[0] if len(argv) > 0 else DEFAULT_MBOX_FILE
	top_n_senders = int(argv[1]) if len(argv) > 1 else DEFAULT_TOP_SENDERS
	if top_n_senders <= 0:
		print(f'FATAL ERROR: Expected a positive number of senders, got {top_n_senders}', file=sys.stderr)
		return 1

	try:
		validate_mbox_file(filename, logger)
		print(f'File confirmed: {filename}. Size: {file_size_mb(filename)} MB.')
		senders_count = count_senders(filename)
	except OSError as e:
		print(f'FATAL ERROR: {e}', file=sys.stderr)
		return 1

	logger.info(f'Found {len(senders_count)} senders!')
	if not senders_count:
		print('No senders found.')
		return 0

	print_ranking(rank_senders(senders_count, top_n_senders), top_n_senders)
	return 0


if __name__ == '__main__':
	sys.exit(main())
