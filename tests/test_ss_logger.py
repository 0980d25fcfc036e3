import logging

from sswarm.ss_logger import HEADER, PacketDirection, SsLogger
from sswarm.utils import Endpoint


def test_log_joins_arguments_after_header(caplog):
    caplog.set_level(logging.DEBUG)
    logger = SsLogger("t_log")
    text = logger.log(logging.INFO, "(@node)", "start")
    assert text == f"{HEADER} (@node) start"
    records = [r for r in caplog.records if r.name == logger.system_logger.name]
    assert [r.getMessage() for r in records] == [text]
    assert records[0].levelno == logging.INFO


def test_log_packet_incoming_uses_receive_tag(caplog):
    caplog.set_level(logging.DEBUG)
    logger = SsLogger("t_in")
    text = logger.log_packet(
        logging.INFO, PacketDirection.INCOMING, Endpoint("127.0.0.1", 9000)
    )
    assert text.startswith(HEADER)
    assert "(receive):" in text
    assert "127.0.0.1:9000" in text
    names = {r.name for r in caplog.records}
    assert logger.packet_logger.name in names
    assert logger.system_logger.name not in names


def test_log_packet_outgoing_uses_send_tag_and_extra_args():
    logger = SsLogger("t_out")
    text = logger.log_packet(
        logging.INFO, PacketDirection.OUTGOING, Endpoint("10.0.0.1", 4000), "ping"
    )
    assert "(send):" in text
    assert "(receive):" not in text
    assert text.endswith("10.0.0.1:4000 ping")


def test_level_is_passed_through(caplog):
    caplog.set_level(logging.DEBUG)
    logger = SsLogger("t_level")
    logger.log(logging.WARNING, "stop")
    levels = [r.levelno for r in caplog.records if r.name == logger.system_logger.name]
    assert levels == [logging.WARNING]