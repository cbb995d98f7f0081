from ai_gateway.capabilities.chat import PERSONAS
from ai_gateway.providers.openrouter import QA_PROMPT, RAG_PROMPT, RAG_REFUSAL
from ai_gateway.schemas import Persona


def test_every_persona_has_a_prompt() -> None:
    assert set(PERSONAS) == set(Persona.__args__)
    for persona in PERSONAS.values():
        assert persona.name
        assert persona.system_prompt.startswith("You are")
        assert "Always" in persona.system_prompt


def test_rag_prompt_restricts_answers_to_context() -> None:
    assert sorted(RAG_PROMPT.input_variables) == ["context", "question"]
    text = RAG_PROMPT.format(context="Policy text.", question="What is required?")

    assert "based only on the following context" in text
    assert RAG_REFUSAL in text
    assert "Policy text." in text


def test_qa_prompt_carries_question_and_optional_context() -> None:
    assert sorted(QA_PROMPT.input_variables) == ["context", "question"]
    messages = QA_PROMPT.format_messages(question="Why?", context="")

    assert messages[0].type == "system"
    assert "If you don't know the answer, say so." in messages[0].content
    assert messages[1].content.startswith("Question: Why?")
