"""
iCalendar attachment for event invitations.
"""

from datetime import timedelta

from icalendar import Calendar, Event as CalendarEvent, vCalAddress, vText

from .models import Event

EVENT_DURATION = timedelta(hours=1)
PRODID = "-//Convo//convo.events//EN"


def build_ics(event: Event, organizer_name: str) -> str:
    """
    Serialize an event as a one-event calendar.

    The organizer is the event's reply address so calendar replies are
    ingested like any other email.
    """
    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("method", "REQUEST")

    entry = CalendarEvent()
    entry.add("uid", event.id)
    entry.add("created", event.created_at)
    entry.add("dtstamp", event.created_at)
    entry.add("dtstart", event.timestamp)
    entry.add("dtend", event.timestamp + EVENT_DURATION)
    entry.add("summary", event.name)
    entry.add("location", event.address)
    entry.add("description", event.description)

    organizer = vCalAddress(f"MAILTO:{event.email}")
    organizer.params["cn"] = vText(organizer_name)
    entry["organizer"] = organizer

    cal.add_component(entry)
    return cal.to_ical().decode("utf-8")
