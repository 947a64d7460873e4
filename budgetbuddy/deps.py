from budgetbuddy.chat.dispatcher import ActionDispatcher
from budgetbuddy.chat.insights import InsightGenerator
from budgetbuddy.chat.pipeline import ChatPipeline
from budgetbuddy.config import get_settings
from budgetbuddy.db.repository import RecordStore
from budgetbuddy.llm.oracle import OpenAIOracle
from budgetbuddy.llm.parser import IntentParser

settings = get_settings()

store = RecordStore(settings.db_path, default_budget=settings.default_budget)
oracle = OpenAIOracle(
    api_key=settings.openrouter_api_key,
    model=settings.llm_model,
    base_url=settings.llm_base_url,
    timeout=settings.llm_timeout_seconds,
)
parser = IntentParser(oracle)
insights = InsightGenerator(store, oracle, expense_limit=settings.insight_expense_limit)
pipeline = ChatPipeline(store, parser, ActionDispatcher(store, insights))
