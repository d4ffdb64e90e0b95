# tradebot/domain/messages.py
"""User-facing message catalogue.  ``t(key, **fields)`` formats an entry."""

MESSAGES = {
    # ── General ───────────────────────────────────────────────
    "WELCOME": (
        "🤖 *Welcome to the {chain} Trading Bot!*\n\n"
        "Trade tokens on {chain} straight from this chat."
    ),
    "WELCOME_NO_WALLET": (
        "🤖 *Welcome to the {chain} Trading Bot!*\n\n"
        "You don't have a wallet yet. Create a new one or import an existing one."
    ),
    "MAIN_MENU": "🤖 *{chain} Trading Bot*\n\nWhat would you like to do?",
    "IDLE_HELP": (
        "🤖 Hello! Here are some things you can do:\n\n"
        "/wallet - View your wallet\n"
        "/balance - Check your balances\n"
        "/buy - Buy tokens with {native}\n"
        "/sell - Sell tokens for {native}\n"
        "/deposit - Get your deposit address\n"
        "/withdraw - Withdraw {native} to another address\n"
        "/settings - Change trading settings\n"
        "/help - Show this help message"
    ),
    "HELP": (
        "🤖 *{chain} Trading Bot Help*\n\n"
        "*Wallet Commands:*\n"
        "/start - Start the bot and register\n"
        "/wallet - Show wallet address and type\n"
        "/create - Create a new wallet\n"
        "/import - Import wallet via private key\n"
        "/export - Display private key (with confirmation)\n\n"
        "*Balance Commands:*\n"
        "/balance - Show current token balances\n\n"
        "*Trading Commands:*\n"
        "/buy - Buy tokens with {native}\n"
        "/sell - Sell tokens for {native}\n"
        "/settings - Change slippage and gas priority\n\n"
        "*Transfer Commands:*\n"
        "/deposit - Show your deposit address\n"
        "/withdraw - Withdraw {native} to another address\n\n"
        "*Other Commands:*\n"
        "/cancel - Cancel current operation\n"
        "/help - Show this help message"
    ),
    "UNKNOWN_COMMAND": "Unknown command. Type /help to see what I can do.",
    "UNKNOWN_CALLBACK": "Unknown command",
    "UNKNOWN_ACTION": "Unknown action",
    "EXPIRED_BUTTON": "This button has expired.",
    "USE_BUTTONS": "Please choose one of the options above, or type /cancel.",
    "GENERIC_ERROR": "❌ Something went wrong while processing your request. Please try again.",
    "CANCELLED": "✅ Operation cancelled.",
    "NOTHING_TO_CANCEL": "There is no active operation to cancel.",
    "CONFIRMATION_EXPIRED": "⌛ This confirmation has expired. Please start the operation again.",
    "OPERATION_FAILED": "❌ {reason}",

    # ── Wallet ────────────────────────────────────────────────
    "NO_WALLET": "❌ You don't have a wallet yet. Use /create or /import first.",
    "WALLET_INFO": "💼 *Your Wallet*\n\nAddress: `{address}`\nType: {kind}",
    "WALLET_EXISTS_CREATE": (
        "⚠️ You already have a wallet.\n\n"
        "Creating a new wallet will replace your current one. Make sure you have "
        "exported your private key first. Continue?"
    ),
    "WALLET_EXISTS_IMPORT": (
        "⚠️ You already have a wallet.\n\n"
        "Importing a wallet will replace your current one. Make sure you have "
        "exported your private key first. Continue?"
    ),
    "WALLET_CREATED": (
        "✅ *Wallet created!*\n\nAddress: `{address}`\n\n"
        "Use /export to back up your private key."
    ),
    "WALLET_REPLACE_CANCELLED": "Operation cancelled. Your existing wallet remains unchanged.",
    "IMPORT_PROMPT": (
        "🔑 Please send your private key.\n\n"
        "⚠️ Delete the message after importing. Type /cancel to abort."
    ),
    "IMPORT_INVALID_KEY": "❌ Invalid private key. It must be 64 hexadecimal characters. Try again or /cancel.",
    "WALLET_IMPORTED": (
        "✅ *Wallet imported!*\n\nAddress: `{address}`\n\n"
        "Please delete the message containing your private key."
    ),
    "EXPORT_WARNING": (
        "⚠️ *Security warning*\n\n"
        "Your private key gives full control of your funds. Never share it with anyone.\n\n"
        "Reveal your private key?"
    ),
    "EXPORT_REVEAL": "🔑 *Your private key:*\n\n`{secret}`\n\nDelete this message once you've saved it.",
    "EXPORT_CANCELLED": "✅ Export cancelled. Your private key was not revealed.",

    # ── Balances / transfers ──────────────────────────────────
    "BALANCE_HEADER": "💰 *Balances for* `{address}`\n",
    "BALANCE_LINE": "{symbol}: {amount}",
    "BALANCE_EMPTY": "No token balances found.",
    "DEPOSIT": (
        "📥 *Deposit*\n\nSend {native} or tokens on *{chain}* to:\n\n`{address}`\n\n"
        "⚠️ Only send assets on the {chain} network."
    ),

    # ── Buy / sell ────────────────────────────────────────────
    "BUY_SELECT_TOKEN": "💱 *Buy Token*\n\nSelect the token you want to buy:",
    "SELECT_TOKEN_REPROMPT": "Please choose a token using the buttons above, or /cancel.",
    "ENTER_TOKEN_ADDRESS": "Send the token contract address (0x…), or /cancel.",
    "BUY_ENTER_AMOUNT": "How much {native} do you want to spend on *{token}*?",
    "BUY_CONFIRM": (
        "🧾 *Confirm Buy*\n\n"
        "Spend: {amount} {native}\n"
        "Receive (est.): {amount_out} {token}\n"
        "Price impact: {impact}%\n"
        "Slippage: {slippage}%\n\n"
        "Proceed?"
    ),
    "BUY_DONE": "✅ Bought *{token}* for {amount} {native}.\n\nTx: `{tx_hash}`",
    "BUY_CANCELLED": "✅ Buy cancelled.",
    "SELL_SELECT_TOKEN": "💱 *Sell Token*\n\nSelect the token you want to sell:",
    "SELL_NO_TOKENS": "You don't hold any tokens to sell. Tap *Custom token* to enter a token address, or /cancel.",
    "SELL_ENTER_AMOUNT": "How much *{token}* do you want to sell?{balance_hint}",
    "SELL_CONFIRM": (
        "🧾 *Confirm Sell*\n\n"
        "Sell: {amount} {token}\n"
        "Receive (est.): {amount_out} {native}\n"
        "Price impact: {impact}%\n"
        "Slippage: {slippage}%\n\n"
        "Proceed?"
    ),
    "SELL_DONE": "✅ Sold {amount} *{token}*.\n\nTx: `{tx_hash}`",
    "SELL_CANCELLED": "✅ Sell cancelled.",

    # ── Withdraw ──────────────────────────────────────────────
    "WITHDRAW_ENTER_ADDRESS": "📤 *Withdraw*\n\nSend the destination address (0x…), or /cancel.",
    "WITHDRAW_ENTER_AMOUNT": "How much {native} do you want to withdraw?{balance_hint}",
    "WITHDRAW_CONFIRM": (
        "🧾 *Confirm Withdrawal*\n\n"
        "Amount: {amount} {native}\n"
        "To: `{to}`\n\n"
        "Proceed?"
    ),
    "WITHDRAW_DONE": "✅ Sent {amount} {native} to `{to}`.\n\nTx: `{tx_hash}`",
    "WITHDRAW_CANCELLED": "✅ Withdrawal cancelled.",

    # ── Validation ────────────────────────────────────────────
    "INVALID_AMOUNT": "❌ Please enter a valid positive number.",
    "INVALID_ADDRESS": "❌ Invalid address. It must be 0x followed by 40 hexadecimal characters.",
    "INSUFFICIENT_BALANCE": "❌ Insufficient balance. You have {balance} {symbol}.",
    "INVALID_SLIPPAGE": "❌ Slippage must be between {low}% and {high}%.",

    # ── Settings ──────────────────────────────────────────────
    "SETTINGS_MENU": (
        "⚙️ *Settings*\n\n"
        "Slippage: {slippage}%\n"
        "Gas priority: {gas_priority}\n\n"
        "What would you like to change?"
    ),
    "SETTINGS_SLIPPAGE": "Select your maximum slippage (current: {slippage}%):",
    "SETTINGS_GAS": "Select your gas priority (current: {gas_priority}):",
    "SLIPPAGE_UPDATED": "✅ Slippage set to {slippage}%.",
    "GAS_UPDATED": "✅ Gas priority set to {gas_priority}.",
}


def t(key: str, **fields) -> str:
    text = MESSAGES[key]
    return text.format(**fields) if fields else text
