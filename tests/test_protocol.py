from policyd.protocol import AttributeParser, format_response
from tests import utils


def test_request_terminated_by_empty_line():
    parser = AttributeParser()

    assert parser.feed(b'sender=alice@example.com\n') is None
    assert parser.feed(b'recipient=bob@x.test\n') is None

    d = parser.feed(b'\n')
    assert d == {'sender': 'alice@example.com', 'recipient': 'bob@x.test'}


def test_split_on_first_equal_sign():
    parser = AttributeParser()
    parser.feed(b'subject=a=b==c\n')
    parser.feed(b'empty=\n')

    d = parser.feed(b'\n')
    assert d['subject'] == 'a=b==c'
    assert d['empty'] == ''


def test_line_without_equal_sign_ignored():
    parser = AttributeParser()
    parser.feed(b'garbage\n')
    parser.feed(b'sender=alice@example.com\n')

    d = parser.feed(b'\n')
    assert d == {'sender': 'alice@example.com'}


def test_later_duplicate_overrides():
    parser = AttributeParser()
    parser.feed(b'sender=first@example.com\n')
    parser.feed(b'sender=second@example.com\n')

    assert parser.feed(b'\n') == {'sender': 'second@example.com'}


def test_parser_reset_after_request():
    parser = AttributeParser()
    parser.feed(b'sender=alice@example.com\n')
    parser.feed(b'\n')

    parser.feed(b'recipient=bob@x.test\n')
    assert parser.feed(b'\n') == {'recipient': 'bob@x.test'}

    # Empty request.
    assert parser.feed(b'\n') == {}


def test_only_line_feed_stripped():
    parser = AttributeParser()
    parser.feed(b'subject= hello \r\n')

    d = parser.feed(b'\n')
    assert d['subject'] == ' hello \r'


def test_str_lines_accepted():
    parser = AttributeParser()
    parser.feed('sender=alice@example.com')

    assert parser.feed('') == {'sender': 'alice@example.com'}


def test_non_utf8_value_passed_through():
    parser = AttributeParser()
    parser.feed(b'subject=caf\xe9\n')

    d = parser.feed(b'\n')
    assert d['subject'].encode('utf-8', 'surrogateescape') == b'caf\xe9'


def test_reset_discards_partial_request():
    parser = AttributeParser()
    parser.feed(b'sender=alice@example.com\n')
    parser.reset()

    assert parser.feed(b'\n') == {}


def test_sample_session():
    parser = AttributeParser()

    d = None
    for line in utils.set_smtp_session(sender='alice@example.com').splitlines(keepends=True):
        d = parser.feed(line)

    assert d['sender'] == 'alice@example.com'
    assert d['protocol_state'] == 'RCPT'


def test_response_framing():
    assert format_response('DUNNO') == b'action=DUNNO\n\n'


def test_response_framing_non_ascii():
    action = 'DEFER_IF_PERMIT Günlük mail limiti aşıldı (500/500). Mail kuyruğa alındı.'
    r = format_response(action)

    assert r.startswith(b'action=DEFER_IF_PERMIT ')
    assert r.endswith(b'.\n\n')
    assert r.count(b'\n') == 2
    assert r.decode('utf-8') == 'action=' + action + '\n\n'
