# backend/app/api/v1/agents.py
from fastapi import APIRouter, Depends, status
from typing import List

from app.api.dependencies import get_scoped_data_access
from app.core.exceptions import RecordNotFoundError
from app.db.repositories.scoped import ScopedClient
from app.schemas.agent import Agent, AgentCreate, AgentUpdate

# Gated on the "agents" plan feature in router.py
router = APIRouter()


@router.get("", response_model=List[Agent])
async def list_agents(client: ScopedClient = Depends(get_scoped_data_access)):
    return await client.agent.find_many(order_by="name")


@router.get("/{agent_id}", response_model=Agent)
async def get_agent(agent_id: str, client: ScopedClient = Depends(get_scoped_data_access)):
    agent = await client.agent.find_unique({"id": agent_id})
    if not agent:
        raise RecordNotFoundError("Agent")
    return agent


@router.post("", response_model=Agent, status_code=status.HTTP_201_CREATED)
async def create_agent(payload: AgentCreate, client: ScopedClient = Depends(get_scoped_data_access)):
    return await client.agent.create(payload.model_dump())


@router.patch("/{agent_id}", response_model=Agent)
async def update_agent(
    agent_id: str,
    payload: AgentUpdate,
    client: ScopedClient = Depends(get_scoped_data_access),
):
    return await client.agent.update({"id": agent_id}, payload.model_dump(exclude_unset=True))


@router.delete("/{agent_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_agent(agent_id: str, client: ScopedClient = Depends(get_scoped_data_access)):
    await client.agent.delete({"id": agent_id})
