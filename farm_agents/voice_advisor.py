# farm_agents/voice_advisor.py

from typing import Optional

from langchain_core.language_models import BaseLanguageModel
from langchain_core.prompts import ChatPromptTemplate

from farm_core.models import DEFAULT_LANGUAGE, VoiceConversation
from farm_core.repository import FarmRepository

FALLBACK_ANSWER = "I'm sorry, I couldn't generate advice for your question. Please try rephrasing it."


class VoiceAdvisorAgent:
    """Answers a farmer's spoken question and keeps the exchange in the repository."""

    def __init__(self, llm: BaseLanguageModel, repository: FarmRepository):
        self.llm = llm
        self.repository = repository
        self.prompt = ChatPromptTemplate.from_messages([
            ("system",
             "You are AgriMind, an AI assistant helping small-scale farmers increase their crop yields "
             "through practical agricultural guidance. Always provide specific, actionable advice."),
            ("human",
             """You are an AI farming assistant specializing in small-scale agriculture for developing regions. Answer the farmer's question with practical, actionable advice.

{context}

Question: {question}

Guidelines for your response:
- Keep answers concise but comprehensive (2-4 sentences)
- Focus on low-cost, locally available solutions
- Consider climate and resource constraints
- Include specific measurements, timing, or quantities when relevant
- Prioritize organic and sustainable methods
- If the question is about plant diseases, be specific about symptoms and treatments
- Reply in {language}"""),
        ])
        self.chain = self.prompt | self.llm

    def ask(
        self,
        user_id: Optional[str],
        question: str,
        language: Optional[str] = None,
        context: Optional[str] = None,
    ) -> VoiceConversation:
        print("---VOICE ADVISOR AGENT---")
        if not question or not question.strip():
            raise ValueError("Question is required")

        response = self.chain.invoke({
            "question": question,
            "context": f"Context: {context}" if context else "",
            "language": language or DEFAULT_LANGUAGE,
        })
        answer = getattr(response, "content", response) or FALLBACK_ANSWER

        return self.repository.create_voice_conversation({
            "user_id": user_id,
            "question": question,
            "answer": answer,
            "language": language,
        })
