"""LangChain runnables for the two answer paths."""

from __future__ import annotations

from operator import itemgetter
from typing import Sequence

from langchain_core.documents import Document
from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate
from langchain_core.retrievers import BaseRetriever
from langchain_core.runnables import Runnable, RunnableParallel

from eip_agent.utils.prompts import CONVERSATION_TEMPLATE, RETRIEVAL_TEMPLATE


def _join_documents(documents: Sequence[Document]) -> str:
    return "\n\n".join(doc.page_content for doc in documents)


def build_conversation_chain(model: BaseChatModel) -> Runnable:
    """Template → model → text. Input: {"chat_history", "input"}."""
    prompt = PromptTemplate.from_template(CONVERSATION_TEMPLATE)
    return prompt | model | StrOutputParser()


def build_retrieval_chain(retriever: BaseRetriever, model: BaseChatModel) -> Runnable:
    """
    Retrieval-augmented chain. Input: {"question", "chat_history"}.

    The question is sent to the retriever; the retrieved passages fill the
    {context} slot of the retrieval template.
    """
    prompt = PromptTemplate.from_template(RETRIEVAL_TEMPLATE)
    inputs = RunnableParallel(
        context=itemgetter("question") | retriever | _join_documents,
        question=itemgetter("question"),
        chat_history=itemgetter("chat_history"),
    )
    return inputs | prompt | model | StrOutputParser()
