from loguru import logger

from budgetbuddy.chat.dispatcher import ActionDispatcher
from budgetbuddy.chat.fast_path import match_fast_path
from budgetbuddy.db.repository import RecordStore
from budgetbuddy.llm.parser import IntentParser
from budgetbuddy.models.schemas import ChatResponse, ChatState

BUDGET_REMINDER = "🎯 **First set your budget!** Try: \"Set my budget to ₹5000\""


class ChatPipeline:
    """Entry point for chat messages.

    received -> fast_path_matched | oracle_classified
             -> date_needs_clarification | action_dispatched
                | query_answered | unclear

    Every message ends in exactly one response; nothing is retried.
    """

    def __init__(
        self, store: RecordStore, parser: IntentParser, dispatcher: ActionDispatcher
    ):
        self.store = store
        self.parser = parser
        self.dispatcher = dispatcher

    def handle_chat_message(self, message: str) -> ChatResponse:
        message = message.strip()
        if not message:
            raise ValueError("Message is required")
        logger.info("Chat {}: {}", ChatState.RECEIVED.value, message)

        lowered = message.lower()
        if (
            self.store.get_budget() == 0
            and "budget" not in lowered
            and "set" not in lowered
        ):
            logger.info("No budget set, asking the user to set one first")
            return ChatResponse(
                response_text=BUDGET_REMINDER,
                intent="general_help",
                state=ChatState.QUERY_ANSWERED,
            )

        intent = match_fast_path(message)
        if intent is not None:
            logger.info("Chat {}: {}", ChatState.FAST_PATH_MATCHED.value, intent.intent)
        else:
            intent = self.parser.classify(message)
            logger.info("Chat {}: {}", ChatState.ORACLE_CLASSIFIED.value, intent.intent)

        response = self.dispatcher.dispatch(intent, message)
        logger.info("Chat {} ({})", response.state.value, response.intent)
        return response
