"""Telegram message formatting utilities."""

import telegramify_markdown

# Telegram rejects messages over 4096 characters
CHUNK_SIZE = 4000


def chunk_text(text: str, size: int = CHUNK_SIZE) -> list[str]:
    """Split text into message-sized chunks, preferring line boundaries."""
    chunks = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > size:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:size])
            line = line[size:]
        if len(current) + len(line) > size:
            chunks.append(current)
            current = ""
        current += line
    if current:
        chunks.append(current)
    return chunks


async def send_markdown(bot_or_msg, text: str, *, chat_id: int | None = None):
    """Send markdown text to Telegram, converting to MarkdownV2.

    bot_or_msg: a Bot instance (pass chat_id) or an Update.message (calls reply_text).
    """
    for chunk in chunk_text(text):
        converted = telegramify_markdown.markdownify(chunk)
        if chat_id is not None:
            await bot_or_msg.send_message(chat_id=chat_id, text=converted, parse_mode="MarkdownV2")
        else:
            await bot_or_msg.reply_text(converted, parse_mode="MarkdownV2")
