# ticketing/tickets.py
"""
Ticket operations.

Handlers in app.py stay thin; everything here raises ApiError subclasses for
bad input or missing records and lets PyMongoError propagate.

The user's `ticketsPurchased` field mirrors the number of ticket documents
that reference the user. Every ticket create or delete recounts the user's
tickets and stores the result, so earlier drift is repaired on the next write.
The ticket write and the recount share a transaction when MONGO_TRANSACTIONS
is on.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from bson import ObjectId

from . import db
from .errors import NotFound, ValidationError
from .helpers import (
    day_bounds,
    optional_str,
    parse_day,
    parse_oid,
    public_ticket,
    public_user,
    purchase_time,
    safe_float,
)

logger = logging.getLogger("ticketing.tickets")

FILTERS = ("event", "user", "date")


def list_tickets() -> List[Dict[str, Any]]:
    return [public_ticket(t) for t in db.tickets_col.find()]


def filter_tickets(filter_name: str, value: str) -> List[Dict[str, Any]]:
    filter_name = (filter_name or "").strip().lower()
    if filter_name == "event":
        query: Dict[str, Any] = {"eventId": parse_oid(value, "value", "event ID")}
    elif filter_name == "user":
        query = {"userId": parse_oid(value, "value", "user ID")}
    elif filter_name == "date":
        start, end = day_bounds(parse_day(value))
        query = {"purchasedDate": {"$gte": start, "$lt": end}}
    else:
        raise ValidationError(f"filter must be one of: {', '.join(FILTERS)}.", "filter")
    return [public_ticket(t) for t in db.tickets_col.find(query)]


def get_ticket(ticket_id: str) -> Dict[str, Any]:
    tid = parse_oid(ticket_id, "ticket_id", "ticket ID")
    ticket = db.tickets_col.find_one({"_id": tid})
    if not ticket:
        raise NotFound("Ticket not found")
    event = db.events_col.find_one({"_id": ticket.get("eventId")})
    if not event:
        raise NotFound("Event not found")
    out = public_ticket(ticket)
    out["organizerName"] = event.get("event_organizer", "")
    return out


def create_ticket(data: Dict[str, Any]) -> Dict[str, Any]:
    user_id = parse_oid(data.get("userId"), "userId", "user ID")
    event_id = parse_oid(data.get("eventId"), "eventId", "event ID")
    if data.get("price") is None:
        raise ValidationError("price is required.", "price")
    price = safe_float(data.get("price"), "price", min_value=0.0)

    if not db.users_col.find_one({"_id": user_id}, {"_id": 1}):
        raise NotFound("User not found.")
    if not db.events_col.find_one({"_id": event_id}, {"_id": 1}):
        raise NotFound("Event not found.")

    doc = {
        "userId": user_id,
        "eventId": event_id,
        "ticketId": optional_str(data, "ticketId"),
        "partyName": optional_str(data, "partyName"),
        "userName": optional_str(data, "userName"),
        "purchasedDate": purchase_time(),
        "price": price,
        "promoCode": optional_str(data, "promoCode"),
    }

    with db.write_session() as session:
        res = db.tickets_col.insert_one(doc, session=session)
        count = _sync_ticket_count(user_id, session)
    doc["_id"] = res.inserted_id
    logger.info("Ticket %s created for user %s, event %s (%d tickets)", res.inserted_id, user_id, event_id, count)
    return public_ticket(doc)


def delete_ticket(ticket_id: str, user_id: str) -> Dict[str, Any]:
    tid = parse_oid(ticket_id, "ticketId", "ticket ID")
    uid = parse_oid(user_id, "userId", "user ID")

    with db.write_session() as session:
        deleted = db.tickets_col.find_one_and_delete({"_id": tid, "userId": uid}, session=session)
        if not deleted:
            raise NotFound("Ticket not found")
        count = _sync_ticket_count(uid, session)
    logger.info("Ticket %s deleted for user %s (%d tickets left)", tid, uid, count)
    return public_ticket(deleted)


def sales_by_day(event_id: str) -> List[Dict[str, Any]]:
    """Tickets sold per UTC calendar day for an event, oldest day first."""
    eid = parse_oid(event_id, "eventId", "event ID")
    rows = db.tickets_col.aggregate(_sales_pipeline(eid))
    sales = []
    for r in rows:
        day = r["_id"]
        if day.get("year") is None:
            continue
        sales.append({"_id": "%04d-%02d-%02d" % (day["year"], day["month"], day["day"]), "ticketsSold": int(r["ticketsSold"])})
    if not sales:
        raise NotFound("No tickets found for this event.")
    return sales


def _sales_pipeline(event_id: ObjectId) -> List[Dict[str, Any]]:
    return [
        # tickets without a stored purchase date have no day to fall into
        {"$match": {"eventId": event_id, "purchasedDate": {"$type": "date"}}},
        {
            "$group": {
                "_id": {
                    "year": {"$year": "$purchasedDate"},
                    "month": {"$month": "$purchasedDate"},
                    "day": {"$dayOfMonth": "$purchasedDate"},
                },
                "ticketsSold": {"$sum": 1},
            }
        },
        {"$sort": {"_id.year": 1, "_id.month": 1, "_id.day": 1}},
    ]


def users_by_event(event_id: str) -> List[Dict[str, Any]]:
    eid = parse_oid(event_id, "eventId", "event ID")
    user_ids = db.tickets_col.distinct("userId", {"eventId": eid})
    if not user_ids:
        raise NotFound("No tickets found for this event")
    users = list(db.users_col.find({"_id": {"$in": user_ids}}))
    if not users:
        raise NotFound("No users found for these tickets")
    return [public_user(u) for u in users]


def recount_user_tickets(user_id: str) -> Dict[str, Any]:
    """Rebuild a user's ticketsPurchased from the tickets collection."""
    uid = parse_oid(user_id, "user_id", "user ID")
    if not db.users_col.find_one({"_id": uid}, {"_id": 1}):
        raise NotFound("User not found.")
    _sync_ticket_count(uid)
    return public_user(db.users_col.find_one({"_id": uid}))


def _sync_ticket_count(user_id: ObjectId, session=None) -> int:
    count = db.tickets_col.count_documents({"userId": user_id}, session=session)
    db.users_col.update_one(
        {"_id": user_id},
        {"$set": {"ticketsPurchased": count}},
        session=session,
    )
    logger.debug("User %s ticketsPurchased set to %d", user_id, count)
    return count
