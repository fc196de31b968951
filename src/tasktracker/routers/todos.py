from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status

from ..schemas import (
    ErrorOut,
    MessageOut,
    TodoCreateRequest,
    TodoEnvelope,
    TodoListEnvelope,
    TodoOut,
    TodoUpdateRequest,
)
from ..todo_service import TodoService

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)


def get_todo_service(request: Request) -> TodoService:
    """
    Dependency returning the TodoService built by create_app.
    """
    return request.app.state.todo_service


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TodoListEnvelope,
    summary="List Todos",
    description="List todos ordered by creation time, optionally only those owned by `email`.",
)
def list_todos(
    email: str = Query("", description="Owner email to filter by; empty returns every todo"),
    todos: TodoService = Depends(get_todo_service),
) -> TodoListEnvelope:
    return TodoListEnvelope(todos=[TodoOut.from_domain(t) for t in todos.list(email)])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    responses={400: {"model": ErrorOut, "description": "Email or title missing"}},
)
def create_todo(payload: TodoCreateRequest, todos: TodoService = Depends(get_todo_service)) -> TodoEnvelope:
    """
    Create a new Todo for the given owner.
    """
    created = todos.create(payload.email, payload.title)
    return TodoEnvelope(todo=TodoOut.from_domain(created))


# PUBLIC_INTERFACE
@router.api_route(
    "/{todo_id}",
    methods=["PUT", "PATCH"],
    response_model=TodoEnvelope,
    summary="Update Todo",
    description="Partially update the title and/or completion flag of a Todo item.",
    responses={
        400: {"model": ErrorOut, "description": "Nothing to update, blank title or invalid id"},
        404: {"model": ErrorOut, "description": "Todo not found"},
    },
)
def update_todo(
    todo_id: str,
    payload: TodoUpdateRequest,
    todos: TodoService = Depends(get_todo_service),
) -> TodoEnvelope:
    updated = todos.update(todo_id, payload.to_update())
    return TodoEnvelope(todo=TodoOut.from_domain(updated))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=MessageOut,
    summary="Delete Todo",
    responses={
        400: {"model": ErrorOut, "description": "Invalid id"},
        404: {"model": ErrorOut, "description": "Todo not found"},
    },
)
def delete_todo(todo_id: str, todos: TodoService = Depends(get_todo_service)) -> MessageOut:
    todos.delete(todo_id)
    return MessageOut(message="todo deleted")


# PUBLIC_INTERFACE
@router.delete(
    "",
    response_model=MessageOut,
    summary="Clear Todos",
    description="Delete every todo owned by `email`, or every todo when `email` is empty.",
)
def clear_todos(
    email: str = Query("", description="Owner email; empty clears every todo"),
    todos: TodoService = Depends(get_todo_service),
) -> MessageOut:
    todos.clear(email)
    return MessageOut(message="todos deleted")
