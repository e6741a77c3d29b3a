"""
Agent registry: the agents this server exposes, keyed by the id used in URLs.
"""

from pottery_agent.agent.expert import POTTERY_INSTRUCTIONS, PotteryAgent
from pottery_agent.agent.tools import AGENT_TOOLS
from pottery_agent.core.memory import memory

pottery_agent = PotteryAgent(
    agent_id="potteryAgent",
    name="Pottery Expert",
    instructions=POTTERY_INSTRUCTIONS,
    memory=memory,
    tools=AGENT_TOOLS,
    description="Answers pottery questions (clay, techniques, glazing, firing, tools, troubleshooting) using a Pinecone knowledge base.",
)

AGENTS: dict[str, PotteryAgent] = {pottery_agent.agent_id: pottery_agent}


def get_agent(agent_id: str) -> PotteryAgent | None:
    return AGENTS.get(agent_id)


def list_agents() -> list[dict[str, str]]:
    return [
        {"id": agent_id, "name": agent.name, "description": agent.description}
        for agent_id, agent in AGENTS.items()
    ]
