# tradebot/domain/keyboards.py
"""
Inline keyboard builders.

Each builder returns a Telegram ``reply_markup`` payload
(``{"inline_keyboard": [[{"text", "callback_data"}, ...], ...]}``).
Callback data strings follow the token grammar parsed by
``tradebot.domain.classifier``.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Tuple

from tradebot.domain.ports import Markup, TokenBalance

Button = Tuple[str, str]  # (label, callback_data)

SLIPPAGE_PRESETS = (0.5, 1.0, 2.0, 3.0, 5.0)
GAS_PRIORITIES = ("low", "medium", "high")


def inline_keyboard(rows: Iterable[Sequence[Button]]) -> Markup:
    return {
        "inline_keyboard": [
            [{"text": label, "callback_data": data} for label, data in row]
            for row in rows
        ]
    }


def main_menu() -> Markup:
    return inline_keyboard([
        [("💰 Balance", "check_balance")],
        [("💱 Buy Token", "buy_token"), ("💱 Sell Token", "sell_token")],
        [("📥 Deposit", "deposit"), ("📤 Withdraw", "withdraw")],
        [("⚙️ Settings", "open_settings"), ("❓ Help", "help")],
    ])


def idle_menu() -> Markup:
    return inline_keyboard([
        [("💰 Balance", "check_balance"), ("💱 Buy/Sell", "buy_token")],
        [("📥 Deposit", "deposit"), ("📤 Withdraw", "withdraw")],
    ])


def wallet_setup() -> Markup:
    return inline_keyboard([
        [("🆕 Create Wallet", "create_wallet"), ("📥 Import Wallet", "import_wallet")],
    ])


def wallet_actions() -> Markup:
    return inline_keyboard([
        [("💰 Balance", "check_balance"), ("🔑 Export Key", "export_key")],
        [("🆕 New Wallet", "create_wallet"), ("📥 Import Wallet", "import_wallet")],
    ])


def confirm() -> Markup:
    return inline_keyboard([[("✅ Confirm", "confirm_yes"), ("❌ Cancel", "confirm_no")]])


def replace_wallet(kind: str) -> Markup:
    """Replace-existing-wallet decision; ``kind`` is ``create`` or ``import``."""
    return inline_keyboard([
        [("✅ Yes, replace", f"confirm_{kind}_wallet"), ("❌ No", f"cancel_{kind}_wallet")],
    ])


def buy_tokens(tokens: Dict[str, str]) -> Markup:
    buttons: List[Button] = [(symbol, f"token_{symbol}") for symbol in tokens]
    rows = [buttons[i:i + 3] for i in range(0, len(buttons), 3)]
    rows.append([("✏️ Custom token", "token_custom")])
    return inline_keyboard(rows)


def sell_tokens(balances: Sequence[TokenBalance]) -> Markup:
    rows = [
        [(f"{b.symbol} ({b.amount:g})", f"sell_token_{b.address}")]
        for b in balances
        if b.address
    ]
    rows.append([("✏️ Custom token", "sell_token_custom")])
    return inline_keyboard(rows)


def settings_menu() -> Markup:
    return inline_keyboard([
        [("📉 Slippage", "settings_slippage"), ("⛽ Gas Priority", "settings_gasPriority")],
        [("⬅️ Back", "settings_back")],
    ])


def slippage_options() -> Markup:
    return inline_keyboard([
        [(f"{value:g}%", f"slippage_{value:g}") for value in SLIPPAGE_PRESETS],
        [("⬅️ Back", "settings_back")],
    ])


def gas_options() -> Markup:
    return inline_keyboard([
        [(priority.title(), f"gas_{priority}") for priority in GAS_PRIORITIES],
        [("⬅️ Back", "settings_back")],
    ])
