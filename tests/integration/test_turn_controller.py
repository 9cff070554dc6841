import threading

import pytest
from langchain_core.messages import AIMessage

from mho_agent.agent.executor import SpecialistExecutor
from mho_agent.agent.router import AgentRouter
from mho_agent.config import ControllerConfig
from mho_agent.controller import TURN_ERROR_REPLY, TurnController
from mho_agent.errors import EmptyRequestError, TurnInProgressError
from mho_agent.types import AgentIdentifier, AuditStatus, DelegationDecision, ExecutionResult


class ScriptedLLM:
    """Returns queued replies in order; used for both phases."""

    def __init__(self, replies: list[object]) -> None:
        self.replies = list(replies)
        self.calls: list[list[object]] = []

    def bind_tools(self, tools: list[object]) -> "ScriptedLLM":
        return self

    def invoke(self, messages: list[object]) -> object:
        self.calls.append(messages)
        return self.replies.pop(0)


def _route(agent: str) -> AIMessage:
    return AIMessage(content=f'{{"agent": "{agent}", "reasoning": "test"}}')


def _invoice_call() -> AIMessage:
    return AIMessage(
        content="",
        tool_calls=[
            {
                "name": "generate_document",
                "args": {
                    "docType": "INVOICE",
                    "title": "Surgery",
                    "fields": {"Amount": "100"},
                    "complianceNote": "Audit ready",
                },
                "id": "call-1",
            }
        ],
    )


def _controller(router_replies: list[object], executor_replies: list[object]) -> TurnController:
    return TurnController(
        router=AgentRouter(llm=ScriptedLLM(router_replies)),
        executor=SpecialistExecutor(llm=ScriptedLLM(executor_replies)),
    )


def test_turns_append_messages_and_two_audit_entries_each() -> None:
    controller = _controller(
        [_route("BillingAndFinanceAgent"), _route("AppointmentSchedulingAgent")],
        [_invoice_call(), AIMessage(content="Tuesday at 10:00 works.")],
    )

    first = controller.submit("Generate invoice for surgery")
    second = controller.submit("Book cardiology")

    assert first.sender is AgentIdentifier.BILLING
    assert first.document is not None
    assert second.sender is AgentIdentifier.SCHEDULING
    assert second.text == "Tuesday at 10:00 works."

    entries = controller.state.audit.entries()
    assert len(entries) == 4
    assert [(e.agent, e.action) for e in entries] == [
        (AgentIdentifier.ORCHESTRATOR, "Delegated to BillingAndFinanceAgent"),
        (AgentIdentifier.BILLING, "Generated INVOICE"),
        (AgentIdentifier.ORCHESTRATOR, "Delegated to AppointmentSchedulingAgent"),
        (AgentIdentifier.SCHEDULING, "Responded to query"),
    ]
    assert all(e.status is AuditStatus.SUCCESS for e in entries)

    roles = [m.role for m in controller.state.messages]
    assert roles == ["agent", "user", "agent", "user", "agent"]
    assert controller.state.active_agent is AgentIdentifier.SCHEDULING


def test_history_covers_only_earlier_messages() -> None:
    executor_llm = ScriptedLLM([AIMessage(content="first"), AIMessage(content="second")])
    controller = TurnController(
        router=AgentRouter(
            llm=ScriptedLLM([_route("PatientAdmissionAgent"), _route("PatientAdmissionAgent")])
        ),
        executor=SpecialistExecutor(llm=executor_llm),
        config=ControllerConfig(welcome_message="Hi"),
    )

    controller.submit("Admit patient")
    controller.submit("Print the form")

    first_human = executor_llm.calls[0][1].content
    second_human = executor_llm.calls[1][1].content
    assert first_human == "Context: Central Manager: Hi\n\nCurrent Request: Admit patient"
    assert second_human == (
        "Context: Central Manager: Hi\nUser: Admit patient\nPatientAdmissionAgent: first"
        "\n\nCurrent Request: Print the form"
    )


def test_empty_input_is_rejected_without_state_change() -> None:
    controller = _controller([], [])
    before = len(controller.state.messages)

    with pytest.raises(EmptyRequestError):
        controller.submit("   ")

    assert len(controller.state.messages) == before
    assert len(controller.state.audit) == 0


def test_uncaught_failure_resets_to_orchestrator() -> None:
    class ExplodingExecutor:
        def run(self, agent: object, text: str, history: str) -> ExecutionResult:
            raise RuntimeError("renderer crashed")

    controller = TurnController(
        router=AgentRouter(llm=ScriptedLLM([_route("PharmacyManagementAgent")])),
        executor=ExplodingExecutor(),
    )

    reply = controller.submit("Prescribe amoxicillin")

    assert reply.text == TURN_ERROR_REPLY
    assert reply.sender is AgentIdentifier.ORCHESTRATOR
    assert controller.state.active_agent is AgentIdentifier.ORCHESTRATOR
    assert controller.state.messages[-1] is reply
    assert not controller.busy


def test_second_turn_while_first_in_flight_is_rejected() -> None:
    entered = threading.Event()
    release = threading.Event()

    class BlockingRouter:
        def classify(self, text: str) -> DelegationDecision:
            entered.set()
            release.wait(timeout=5)
            return DelegationDecision(agent=AgentIdentifier.BILLING, rationale="blocked")

    controller = TurnController(
        router=BlockingRouter(),
        executor=SpecialistExecutor(llm=ScriptedLLM([AIMessage(content="done")])),
    )

    worker = threading.Thread(target=controller.submit, args=("first turn",))
    worker.start()
    assert entered.wait(timeout=5)
    assert controller.busy

    with pytest.raises(TurnInProgressError):
        controller.submit("second turn")

    release.set()
    worker.join(timeout=5)

    user_texts = [m.text for m in controller.state.messages if m.role == "user"]
    assert user_texts == ["first turn"]
    assert len(controller.state.audit) == 2
    assert not controller.busy
