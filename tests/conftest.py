import pytest


def _make_message(headers, body='Hello there.', envelope='From sender@example.com Mon Jan  1 10:00:00 2024'):
    lines = [envelope] + list(headers) + ['', body]
    return '\n'.join(lines) + '\n'


@pytest.fixture
def make_message():
    return _make_message


@pytest.fixture
def write_mbox(tmp_path):
    def _write(*messages, name='archive.mbox'):
        path = tmp_path / name
        path.write_text(''.join(messages), encoding='utf-8')
        return path
    return _write
