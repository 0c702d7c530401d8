from policyd import ratelimit
from policyd.modeler import Modeler
from tests import utils
from tests import tdata


def test_allowed(conns, engine, tenant):
    d = {'sender': tdata.sender, 'recipient': tdata.recipient}
    action = Modeler(conns=conns).handle_data(d)

    assert action == 'DUNNO'
    assert utils.count_sent_logs(engine) == 1


def test_subject_recorded(conns, engine, tenant):
    d = {'sender': tdata.sender, 'recipient': tdata.recipient, 'subject': 'Fatura'}
    Modeler(conns=conns).handle_data(d)

    assert utils.get_sent_logs(engine)[0]['subject'] == 'Fatura'


def test_missing_attributes(conns, engine, tenant):
    assert Modeler(conns=conns).handle_data({}) == 'DUNNO'
    assert utils.count_sent_logs(engine) == 0


def test_unexpected_error(conns, engine, tenant, monkeypatch):
    def _raise(**kw):
        raise RuntimeError('boom')

    monkeypatch.setattr(ratelimit, 'apply_rate_limit', _raise)

    d = {'sender': tdata.sender, 'recipient': tdata.recipient}
    assert Modeler(conns=conns).handle_data(d) == 'DUNNO'
    assert utils.count_sent_logs(engine) == 0
    assert utils.count_queued_mails(engine) == 0
