from mbox_parser_simple import count_senders, main


def test_count_senders_uses_header_precedence(write_mbox, make_message):
    path = write_mbox(
        make_message(['From: Jane Doe <Jane@Example.com>', 'Subject: one']),
        make_message(['From: malformed', 'Return-Path: <bounce@example.com>']),
        make_message(['Sender: list@example.com']),
        make_message(['Subject: nobody']),
        make_message(['From: jane@example.com']),
    )
    assert count_senders(str(path)) == {
        'jane@example.com': 2,
        'bounce@example.com': 1,
        'list@example.com': 1,
    }


def test_count_senders_archive_without_delimiter(write_mbox):
    path = write_mbox('From: a@x\n\nbody\n')
    assert count_senders(str(path)) == {'a@x': 1}


def test_count_senders_empty_archive(write_mbox):
    assert count_senders(str(write_mbox())) == {}


def test_count_senders_counts_case_insensitively(write_mbox, make_message):
    path = write_mbox(make_message(['From: Foo@Bar.com']), make_message(['From: foo@bar.com']))
    assert count_senders(str(path)) == {'foo@bar.com': 2}


def test_count_senders_skips_corrupted_message(write_mbox, make_message):
    path = write_mbox(
        make_message(['From: a@x']),
        'From garbage\n\x00\x01 not a header\n\n',
        make_message(['From: b@x']),
    )
    assert count_senders(str(path)) == {'a@x': 1, 'b@x': 1}


def test_count_senders_reports_progress(write_mbox, make_message, capsys):
    path = write_mbox(*[make_message(['From: a@x'])] * 5)
    count_senders(str(path), progress_interval=2)
    out = capsys.readouterr().out
    assert 'Processed 2 messages...' in out
    assert 'Processed 4 messages...' in out
    assert 'Processed 5 messages...' not in out


def test_main_prints_ranking(write_mbox, make_message, capsys):
    path = write_mbox(
        make_message(['From: bob@example.com']),
        make_message(['From: alice@example.com']),
        make_message(['From: alice@example.com']),
        make_message(['From: carol@example.com']),
    )
    assert main([str(path), '2']) == 0
    out = capsys.readouterr().out
    assert 'Size: 0 MB.' in out
    assert '--- Top 2 Senders by Email Count ---' in out
    assert ' 1. Count:      2 | Sender: alice@example.com' in out
    assert ' 2. Count:      1 | Sender: bob@example.com' in out
    assert 'carol@example.com' not in out


def test_main_empty_archive(write_mbox, capsys):
    assert main([str(write_mbox())]) == 0
    out = capsys.readouterr().out
    assert 'No senders found.' in out
    assert 'Senders by Email Count' not in out


def test_main_rejects_non_positive_top_n(write_mbox, capsys):
    assert main([str(write_mbox()), '0']) == 1
    assert 'FATAL ERROR' in capsys.readouterr().err


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / 'missing.mbox')]) == 1
    assert 'FATAL ERROR' in capsys.readouterr().err
