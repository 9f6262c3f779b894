# app/deps.py
from fastapi import Request

from app.services.reader import AggregationReader
from app.services.submissions import SubmissionStore


def get_store(request: Request) -> SubmissionStore:
    return request.app.state.store


def get_reader(request: Request) -> AggregationReader:
    return request.app.state.reader


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""
