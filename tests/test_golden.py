"""Full-output comparisons for the reference workflows."""

import json

from flowgen.workflow import compile_workflow

SEED = '''\
  conversation_history: list[TResponseInputItem] = [
    {
      "role": "user",
      "content": [
        {
          "type": "input_text",
          "text": workflow["input_as_text"]
        }
      ]
    }
  ]'''


SINGLE_AGENT = '''\
from agents import Agent, ModelSettings, TResponseInputItem, Runner
from openai.types.shared.reasoning import Reasoning
from pydantic import BaseModel


agent = Agent(
  name="Agent",
  instructions="You are a helpful assistant.",
  model="gpt-5",
  model_settings=ModelSettings(
    store=True,
    reasoning=Reasoning(
      effort="low"
    )
  )
)


class WorkflowInput(BaseModel):
  input_as_text: str


# Main code entrypoint
async def run_workflow(workflow_input: WorkflowInput):
  state = {}
  workflow = workflow_input.model_dump()
''' + SEED + '''

  agent_result_temp = await Runner.run(
    agent,
    input=[
      *conversation_history
    ]
  )

  conversation_history.extend([item.to_input_item() for item in agent_result_temp.new_items])

  agent_result = {
    "output_text": agent_result_temp.final_output_as(str)
  }

  return agent_result
'''


IF_ELSE = '''\
from agents import Agent, ModelSettings, TResponseInputItem, Runner
from openai.types.shared.reasoning import Reasoning
from pydantic import BaseModel


positive = Agent(
  name="Positive",
  instructions="Handle positive input.",
  model="gpt-5",
  model_settings=ModelSettings(
    store=True,
    reasoning=Reasoning(
      effort="low"
    )
  )
)


negative = Agent(
  name="Negative",
  instructions="Handle other input.",
  model="gpt-5",
  model_settings=ModelSettings(
    store=True,
    reasoning=Reasoning(
      effort="low"
    )
  )
)


class WorkflowInput(BaseModel):
  input_as_text: str


# Main code entrypoint
async def run_workflow(workflow_input: WorkflowInput):
  state = {}
  workflow = workflow_input.model_dump()
''' + SEED + '''

  if workflow["x"] > 0:
    positive_result_temp = await Runner.run(
      positive,
      input=[
        *conversation_history
      ]
    )

    conversation_history.extend([item.to_input_item() for item in positive_result_temp.new_items])

    positive_result = {
      "output_text": positive_result_temp.final_output_as(str)
    }

    return positive_result
  else:
    negative_result_temp = await Runner.run(
      negative,
      input=[
        *conversation_history
      ]
    )

    conversation_history.extend([item.to_input_item() for item in negative_result_temp.new_items])

    negative_result = {
      "output_text": negative_result_temp.final_output_as(str)
    }

    return negative_result
'''


COUNTER_LOOP = '''\
from agents import Agent, ModelSettings, TResponseInputItem, Runner
from openai.types.shared.reasoning import Reasoning
from pydantic import BaseModel


agent = Agent(
  name="Agent",
  instructions="Refine the draft.",
  model="gpt-5",
  model_settings=ModelSettings(
    store=True,
    reasoning=Reasoning(
      effort="low"
    )
  )
)


class WorkflowInput(BaseModel):
  input_as_text: str


# Main code entrypoint
async def run_workflow(workflow_input: WorkflowInput):
  state = {
    "count": 0
  }
  workflow = workflow_input.model_dump()
''' + SEED + '''

  while state["count"] < 3:
    agent_result_temp = await Runner.run(
      agent,
      input=[
        *conversation_history
      ]
    )

    conversation_history.extend([item.to_input_item() for item in agent_result_temp.new_items])

    agent_result = {
      "output_text": agent_result_temp.final_output_as(str)
    }

    state["count"] = state["count"] + 1

  return workflow
'''


class TestGoldenOutputs:
    """Byte-for-byte output of the three reference workflows."""

    def test_single_agent(self, single_agent_graph, config):
        """Start → Agent → End declares `agent` and returns its result."""
        result = compile_workflow(single_agent_graph, config)
        assert result.error == ""
        assert result.code == SINGLE_AGENT

    def test_if_else_two_agents(self, if_else_graph, config):
        """Each branch calls its own agent and returns its own result."""
        result = compile_workflow(if_else_graph, config)
        assert result.error == ""
        assert result.code == IF_ELSE

    def test_counter_loop(self, counter_loop_graph, config):
        """The agent is declared outside the loop and called inside it."""
        result = compile_workflow(counter_loop_graph, config)
        assert result.error == ""
        assert result.code == COUNTER_LOOP

    def test_json_text_input(self, single_agent_graph, config):
        """Exported JSON text compiles the same as the parsed mapping."""
        result = compile_workflow(json.dumps(single_agent_graph), config)
        assert result.code == SINGLE_AGENT
