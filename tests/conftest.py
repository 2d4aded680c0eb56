import pytest

from calloutbot.bot import build_context
from calloutbot.config import BotSettings
from calloutbot.context import BotContext
from calloutbot.i18n import Translator
from tests.fakes import FakeBot, FakeContent


@pytest.fixture
def translator() -> Translator:
    return Translator()


@pytest.fixture
def fake_bot() -> FakeBot:
    return FakeBot()


@pytest.fixture
def fake_content() -> FakeContent:
    return FakeContent()


@pytest.fixture
def settings() -> BotSettings:
    return BotSettings(bot_token="123:abc", api_token="api-token")


@pytest.fixture
def ctx(settings: BotSettings, fake_bot: FakeBot, fake_content: FakeContent) -> BotContext:
    return build_context(settings, bot=fake_bot, content=fake_content)
