"""Sample collections for development and testing.

A small organisation in mid October 2026: four staff, two completed
meetings, one cancelled and two still scheduled. Member rows carry a
populated ``staffId`` object the way the backend returns them.
"""

from __future__ import annotations


def get_mock_staff() -> list[dict]:
    """Return sample staff records."""
    return [
        {
            "_id": "s-1",
            "staffName": "Asha Rao",
            "emailAddress": "asha.rao@example.org",
            "mobileNo": "555-0101",
            "department": "Engineering",
            "role": "Manager",
            "designation": "Engineering Manager",
            "createdAt": "2026-01-12T09:00:00Z",
        },
        {
            "_id": "s-2",
            "staffName": "Ben Okafor",
            "emailAddress": "ben.okafor@example.org",
            "mobileNo": "555-0102",
            "department": "Finance",
            "role": "Staff",
            "designation": "Accountant",
            "createdAt": "2026-03-02T09:00:00Z",
        },
        {
            "_id": "s-3",
            "staffName": "Chen Li",
            "emailAddress": "chen.li@example.org",
            "mobileNo": "555-0103",
            "department": "Engineering",
            "role": "Staff",
            "designation": "Software Engineer",
            "createdAt": "2026-09-28T09:00:00Z",
        },
        {
            "_id": "s-4",
            "staffName": "Dana Novak",
            "emailAddress": "dana.novak@example.org",
            "mobileNo": "555-0104",
            "department": "HR",
            "role": "Admin",
            "designation": "HR Lead",
            "createdAt": "2026-02-16T09:00:00Z",
        },
    ]


def get_mock_meetings() -> list[dict]:
    """Return sample meetings, oldest first."""
    return [
        {
            "_id": "m-1",
            "meetingTitle": "Sprint Planning",
            "meetingDescription": "Plan the next two-week sprint",
            "meetingTypeId": {"_id": "t-1", "meetingTypeName": "Internal"},
            "meetingDate": "2026-10-05T10:00:00Z",
            "meetingTime": "10:00",
            "duration": 60,
            "location": "Room 4",
            "status": "Completed",
            "memberCount": 3,
        },
        {
            "_id": "m-2",
            "meetingTitle": "Budget Review",
            "meetingDescription": "Q3 spend against plan",
            "meetingTypeId": {"_id": "t-2", "meetingTypeName": "Finance"},
            "meetingDate": "2026-10-12T14:00:00Z",
            "meetingTime": "14:00",
            "duration": 90,
            "location": "Board Room",
            "status": "Completed",
            "memberCount": 3,
        },
        {
            "_id": "m-3",
            "meetingTitle": "All Hands",
            "meetingDescription": "Monthly company update",
            "meetingTypeId": {"_id": "t-1", "meetingTypeName": "Internal"},
            "meetingDate": "2026-10-14T16:00:00Z",
            "meetingTime": "16:00",
            "duration": 45,
            "location": "Atrium",
            "status": "Cancelled",
            "cancellationReason": "Venue unavailable",
            "cancelledBy": "Dana Novak",
            "memberCount": 0,
        },
        {
            "_id": "m-4",
            "meetingTitle": "Quarterly Planning",
            "meetingDescription": "Q4 priorities",
            "meetingTypeId": {"_id": "t-1", "meetingTypeName": "Internal"},
            "meetingDate": "2026-10-21T09:30:00Z",
            "meetingTime": "09:30",
            "duration": 120,
            "location": "Room 4",
            "status": "Scheduled",
            "memberCount": 2,
        },
        {
            "_id": "m-5",
            "meetingTitle": "Retrospective",
            "meetingDescription": "Sprint retrospective",
            "meetingTypeId": {"_id": "t-1", "meetingTypeName": "Internal"},
            "meetingDate": "2026-10-28T15:00:00Z",
            "meetingTime": "15:00",
            "duration": 45,
            "location": "Room 2",
            "status": "Scheduled",
            "memberCount": 0,
        },
    ]


# (member id, meeting id, staff id, present)
_MEMBERSHIP = [
    ("mm-1", "m-1", "s-1", True),
    ("mm-2", "m-1", "s-2", True),
    ("mm-3", "m-1", "s-3", False),
    ("mm-4", "m-2", "s-1", True),
    ("mm-5", "m-2", "s-2", False),
    ("mm-6", "m-2", "s-4", True),
    ("mm-7", "m-4", "s-1", False),
    ("mm-8", "m-4", "s-3", False),
]


def get_mock_members() -> dict[str, list[dict]]:
    """Return meeting id -> member rows, staff populated."""
    staff = {s["_id"]: s for s in get_mock_staff()}
    members: dict[str, list[dict]] = {m["_id"]: [] for m in get_mock_meetings()}
    for member_id, meeting_id, staff_id, present in _MEMBERSHIP:
        person = staff[staff_id]
        members[meeting_id].append(
            {
                "_id": member_id,
                "meetingId": meeting_id,
                "staffId": {
                    "_id": staff_id,
                    "staffName": person["staffName"],
                    "emailAddress": person["emailAddress"],
                    "designation": person["designation"],
                },
                "isPresent": present,
                "remarks": "",
            }
        )
    return members
