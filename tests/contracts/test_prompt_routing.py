from mho_agent.agent.personas import DEFAULT_PERSONA, PERSONAS, persona_for
from mho_agent.agent.router import _ROUTER_PROMPT
from mho_agent.agent.tools import DOCUMENT_TOOL
from mho_agent.types import SPECIALISTS, AgentIdentifier


def test_router_prompt_enumerates_specialists_and_demands_json() -> None:
    for agent in SPECIALISTS:
        assert agent.value in _ROUTER_PROMPT
    assert "JSON object ONLY" in _ROUTER_PROMPT
    assert '"reasoning"' in _ROUTER_PROMPT
    assert "generate_document" not in _ROUTER_PROMPT


def test_persona_table_is_total_over_specialists() -> None:
    assert set(PERSONAS) == set(SPECIALISTS)
    assert persona_for(AgentIdentifier.ORCHESTRATOR) is DEFAULT_PERSONA
    assert persona_for("NotAnAgent") is DEFAULT_PERSONA
    assert DEFAULT_PERSONA.tools == ()


def test_document_personas_mention_the_document_tool() -> None:
    for agent, persona in PERSONAS.items():
        if DOCUMENT_TOOL in persona.tools:
            assert DOCUMENT_TOOL in persona.instruction, agent
    assert "HIPAA" in PERSONAS[AgentIdentifier.ADMISSION].instruction
    assert "audit-ready" in PERSONAS[AgentIdentifier.BILLING].instruction
