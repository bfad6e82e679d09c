from loguru import logger

from mockrs.core.config import MockRSSettings
from mockrs.core.logging import TRAFFIC_MODULE, configure_logging, module_levels


class ListSink:
    """Loguru sink collecting formatted lines."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def write(self, message: str) -> None:
        self.lines.append(message)


def _emit(module_name: str, level: str, text: str) -> None:
    logger.patch(lambda record: record.update(name=module_name)).log(level, text)


def _capture(settings: MockRSSettings, records: list[tuple[str, str, str]]) -> str:
    sink = ListSink()
    handler_id = configure_logging(settings, sink=sink)
    try:
        for module_name, level, text in records:
            _emit(module_name, level, text)
    finally:
        logger.remove(handler_id)
    return "".join(sink.lines)


def test_base_level_filters_records():
    output = _capture(
        MockRSSettings(log_level="WARNING"),
        [
            ("mockrs.core.topology", "INFO", "hidden"),
            ("mockrs.core.topology", "WARNING", "shown"),
        ],
    )
    assert "shown" in output
    assert "hidden" not in output


def test_debug_scopes_select_modules():
    output = _capture(
        MockRSSettings(log_debug_scopes=("core.member", " ")),
        [
            ("mockrs.core.member", "DEBUG", "member debug"),
            ("mockrs.core.topology", "DEBUG", "topology debug"),
        ],
    )
    assert "member debug" in output
    assert "topology debug" not in output


def test_verbose_keeps_member_traffic_under_quiet_level():
    records = [
        (TRAFFIC_MODULE, "INFO", "funneled request"),
        ("mockrs.core.topology", "INFO", "topology chatter"),
    ]

    quiet = _capture(MockRSSettings(log_level="WARNING"), records)
    assert "funneled request" not in quiet

    verbose = _capture(MockRSSettings(log_level="WARNING", verbose=True), records)
    assert "funneled request" in verbose
    assert "topology chatter" not in verbose


class TestModuleLevels:
    def test_default_is_log_level(self):
        assert module_levels(MockRSSettings(log_level="error")) == {
            "": logger.level("ERROR").no
        }

    def test_scopes_are_qualified_once(self):
        levels = module_levels(
            MockRSSettings(log_debug_scopes=("core.funnel", "mockrs.core.topology"))
        )
        debug = logger.level("DEBUG").no
        assert levels["mockrs.core.funnel"] == debug
        assert levels["mockrs.core.topology"] == debug
        assert "mockrs.mockrs.core.topology" not in levels

    def test_verbose_never_raises_a_lower_level(self):
        levels = module_levels(MockRSSettings(log_level="DEBUG", verbose=True))
        assert levels[TRAFFIC_MODULE] == logger.level("DEBUG").no

    def test_debug_scope_wins_over_verbose(self):
        levels = module_levels(
            MockRSSettings(
                log_level="WARNING", verbose=True, log_debug_scopes=("core.member",)
            )
        )
        assert levels[TRAFFIC_MODULE] == logger.level("DEBUG").no
