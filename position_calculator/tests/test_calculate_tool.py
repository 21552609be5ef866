import importlib.util
import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from position_calculator.core.config import get_settings  # noqa: E402


def load_tool():
    spec = importlib.util.spec_from_file_location("calculate_tool", ROOT / "tools" / "calculate.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def tool(monkeypatch):
    for name in ("DEFAULT_ACCOUNT_SIZE", "DEFAULT_LEVERAGE", "DEFAULT_ENTRY_PRICE", "DEFAULT_POSITION_TYPE"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield load_tool()
    get_settings.cache_clear()


def test_json_output_uses_defaults(tool, capsys):
    code = tool.main(["--json"])
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is True
    assert payload["result"]["position_size"] == pytest.approx(2.0)
    assert payload["result"]["liquidation_price"] == pytest.approx(45000)


def test_short_risk_sizing(tool, capsys):
    code = tool.main(["--short", "--entry-price", "3000", "--risk-usd", "100", "--stop-loss", "3100", "--json"])
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["result"]["position_size"] == pytest.approx(1.0)
    assert payload["result"]["take_profit_price"] == pytest.approx(2850)


def test_table_output_with_warnings(tool, capsys):
    code = tool.main(["--entry-price", "50000"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Required Margin" in out
    assert "$10,000.00" in out
    assert "warning: Stop Loss Price defaulted" in out


def test_conflict_exits_with_error(tool, capsys):
    code = tool.main(["--entry-price", "100", "--stop-loss", "100"])
    assert code == 1
    assert "error: Stop Loss Price cannot equal Entry Price" in capsys.readouterr().err
