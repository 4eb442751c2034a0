# ticketing/app.py
"""
Event Ticketing API
- Flask backend
- MongoDB via PyMongo
- JSON-only API endpoints under /api

Tickets, users and events live in three collections. Ticket writes keep the
owning user's `ticketsPurchased` counter in step (see tickets.py).
"""
from __future__ import annotations

import logging
import uuid
from datetime import timedelta

import click
from bson import ObjectId
from flask import Flask, Response, request
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from . import config, db, tickets
from .errors import ApiError, NotFound, fail, ok, require_json
from .helpers import parse_oid, public_event, public_user, purchase_time

logger = logging.getLogger("ticketing")

# -------------------------
# App Init
# -------------------------
app = Flask(__name__)
app.json.sort_keys = False


# Attach a request id for debugging/traceability.
@app.before_request
def attach_request_id():
    rid = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    request.environ["request_id"] = rid


@app.after_request
def add_security_headers(resp: Response):
    resp.headers["X-Content-Type-Options"] = "nosniff"
    resp.headers["X-Frame-Options"] = "DENY"
    resp.headers["Referrer-Policy"] = "no-referrer"
    resp.headers["Cache-Control"] = "no-store"
    resp.headers["X-Request-Id"] = request.environ.get("request_id", "")
    return resp


# -------------------------
# Global Error Handlers
# -------------------------
@app.errorhandler(ApiError)
def handle_api_error(err: ApiError):
    return fail(err)


@app.errorhandler(PyMongoError)
def handle_db_error(e: PyMongoError):
    rid = request.environ.get("request_id", "")
    logger.exception("Database error (request_id=%s): %s", rid, e)
    return fail(ApiError("Database error.", 500, "db_error", {"detail": str(e), "request_id": rid}))


@app.errorhandler(404)
def handle_404(_):
    return fail(ApiError("Not found.", 404, "not_found"))


@app.errorhandler(405)
def handle_405(_):
    return fail(ApiError("Method not allowed.", 405, "method_not_allowed"))


@app.errorhandler(Exception)
def handle_exception(e: Exception):
    rid = request.environ.get("request_id", "")
    logger.exception("Unhandled error (request_id=%s): %s", rid, e)
    return fail(ApiError("Internal server error.", 500, "internal_error", {"request_id": rid}))


# -------------------------
# Routes
# -------------------------
@app.get("/api/health")
def health():
    return ok({"status": "up"})


# -------------------------
# Ticket APIs
# -------------------------
@app.get("/api/tickets")
def list_tickets():
    filter_name = request.args.get("filter")
    if filter_name is None:
        return ok({"tickets": tickets.list_tickets()})
    return ok({"tickets": tickets.filter_tickets(filter_name, request.args.get("value", ""))})


@app.post("/api/tickets")
def create_ticket():
    data = require_json()
    return ok({"ticket": tickets.create_ticket(data)}, 201)


@app.get("/api/tickets/<ticket_id>")
def get_ticket(ticket_id: str):
    return ok({"ticket": tickets.get_ticket(ticket_id)})


@app.delete("/api/tickets/<ticket_id>/<user_id>")
def delete_ticket(ticket_id: str, user_id: str):
    deleted = tickets.delete_ticket(ticket_id, user_id)
    return ok({"message": "Ticket deleted successfully", "deletedTicket": deleted})


@app.get("/api/tickets/totalTicketsSold/<event_id>")
def total_tickets_sold(event_id: str):
    return ok({"ticketSalesByDate": tickets.sales_by_day(event_id)})


@app.get("/api/tickets/usersByEvent/<event_id>")
def users_by_event(event_id: str):
    return ok({"users": tickets.users_by_event(event_id)})


# -------------------------
# Event APIs
# -------------------------
@app.get("/api/events")
def list_events():
    events = list(db.events_col.find().sort("createdAt", DESCENDING).limit(config.MAX_LIST))
    return ok({"events": [public_event(e) for e in events]})


def _load_event(event_id: str):
    e = db.events_col.find_one({"_id": parse_oid(event_id, "event_id", "event ID")})
    if not e:
        raise NotFound("Event not found.")
    return e


@app.get("/api/events/<event_id>")
def get_event(event_id: str):
    return ok({"event": public_event(_load_event(event_id))})


@app.get("/api/events/<event_id>/summary")
def event_summary(event_id: str):
    """Everything the event details page shows: event fields, daily sales, ticket holders."""
    e = _load_event(event_id)
    try:
        sales = tickets.sales_by_day(event_id)
    except NotFound:
        sales = []
    try:
        holders = tickets.users_by_event(event_id)
    except NotFound:
        holders = []
    total = sum(s["ticketsSold"] for s in sales)
    event = public_event(e)
    return ok(
        {
            "event": event,
            "ticketSalesByDate": sales,
            "totalTicketsSold": total,
            "seatsAvailable": max(0, event["seats"] - total),
            "users": holders,
        }
    )


# -------------------------
# User APIs
# -------------------------
@app.get("/api/users")
def list_users():
    users = list(db.users_col.find().sort("registrationDate", DESCENDING).limit(config.MAX_LIST))
    return ok({"users": [public_user(u) for u in users]})


@app.get("/api/users/<user_id>")
def get_user(user_id: str):
    u = db.users_col.find_one({"_id": parse_oid(user_id, "user_id", "user ID")})
    if not u:
        raise NotFound("User not found.")
    return ok({"user": public_user(u)})


@app.post("/api/users/<user_id>/ticketsPurchased/recount")
def recount_user_tickets(user_id: str):
    return ok({"user": tickets.recount_user_tickets(user_id)})


# -------------------------
# CLI
# -------------------------
@app.cli.command("init-db")
def init_db_command():
    """Check the Mongo connection and create indexes."""
    db.init_db()
    click.echo("Database initialised.")


@app.cli.command("seed-demo")
def seed_demo_command():
    """Insert a demo event and two users if the database is empty."""
    if db.events_col.count_documents({}) or db.users_col.count_documents({}):
        click.echo("Database not empty; nothing seeded.")
        return
    now = purchase_time()
    event_id = db.events_col.insert_one(
        {
            "eventTitle": "Summer Music Festival",
            "time": "18:00",
            "event_organizer": "Demo Organizer",
            "status": "Active",
            "description": "An outdoor music festival featuring local artists.",
            "location": "Central Park",
            "price": 100.0,
            "seats": 5000,
            "images": [],
            "createdAt": now,
        }
    ).inserted_id
    users = [
        {"userName": "Demo Admin", "email": "admin@example.com", "userRole": "admin"},
        {"userName": "Demo User", "email": "user@example.com", "userRole": "attendee"},
    ]
    for u in users:
        u.update({"_id": ObjectId(), "registrationDate": now - timedelta(days=7), "status": "Active", "ticketsPurchased": 0})
    db.users_col.insert_many(users)
    logger.info("Seeded demo event %s and %d users", event_id, len(users))
    click.echo(f"Seeded event {event_id}.")


if __name__ == "__main__":
    # Production: run behind a WSGI server (gunicorn/uwsgi)
    db.init_db()
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
