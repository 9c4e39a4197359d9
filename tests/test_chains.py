"""Chain wiring, checked with a model that echoes the rendered prompt."""

from langchain_core.documents import Document
from langchain_core.runnables import RunnableLambda

from conftest import StaticRetriever
from eip_agent.services.chains import build_conversation_chain, build_retrieval_chain

echo_model = RunnableLambda(lambda prompt: prompt.to_string())


def test_conversation_chain_fills_template():
    chain = build_conversation_chain(echo_model)
    text = chain.invoke({"chat_history": "user: A\nassistant: B", "input": "C"})

    assert "Senior Blockchain Developer" in text
    assert "Current conversation:\nuser: A\nassistant: B" in text
    assert text.rstrip().endswith("User: C\nAI:")


def test_retrieval_chain_uses_retrieved_context():
    retriever = StaticRetriever(
        documents=[
            Document(page_content="EIP-20: Token Standard"),
            Document(page_content="EIP-721: Non-Fungible Token Standard"),
        ]
    )
    chain = build_retrieval_chain(retriever, echo_model)
    text = chain.invoke({"question": "What is ERC-721?", "chat_history": "user: hi"})

    assert retriever.queries == ["What is ERC-721?"]
    assert "EIP-20: Token Standard\n\nEIP-721: Non-Fungible Token Standard" in text
    assert "user: hi" in text
    assert "User: What is ERC-721?" in text
