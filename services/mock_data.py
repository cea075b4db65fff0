"""Centralized mock sheet rows for development and testing.

Served by :class:`services.collection_store.StaticCollectionStore` when
``debug=true`` and ``USE_MOCK_DATA=true``.  Rows mirror what the Apps Script
endpoint returns, quirks included: mixed point columns, Indonesian status
values, a student without a username and a grade for a deleted assignment.
"""

TEACHER_USERNAME = "guru.sari"

CLASSES = [
    {
        "id": "cls-7a",
        "name": "7A",
        "subject": "Matematika",
        "description": "Kelas matematika 7A",
        "teacherUsername": TEACHER_USERNAME,
        "createdAt": "2025-07-14T01:00:00.000Z",
    },
    {
        "id": "cls-7b",
        "name": "7B",
        "subject": "IPA",
        "description": "Kelas IPA 7B",
        "teacherUsername": TEACHER_USERNAME,
        "createdAt": "2025-07-15T01:00:00.000Z",
    },
]

STUDENTS = [
    {"id": "cls-7a-budi", "username": "budi", "fullName": "Budi Santoso", "classId": "cls-7a", "role": "student"},
    {"id": "cls-7a-ani", "username": "ani", "fullName": "Ani Lestari", "classId": "cls-7a", "role": "student"},
    {"id": "cls-7b-citra", "studentUsername": "citra", "fullName": "Citra Dewi", "classId": "cls-7b"},
    {"id": "default-dodi", "username": "dodi", "fullName": "Dodi Pratama", "classId": "default"},
    {"id": "broken-row", "username": "", "fullName": "Tanpa Username", "classId": "cls-7a"},
]

ASSIGNMENTS = [
    {"id": "asg-001", "title": "Pecahan", "classId": "cls-7a", "dueDate": "2025-09-01T16:59:00.000Z", "maxPoints": 100},
    {"id": "asg-002", "title": "Aljabar Dasar", "classId": "cls-7a", "dueDate": "2025-09-15T16:59:00.000Z", "maxPoints": 100},
    {"id": "asg-003", "title": "Sistem Organ", "classId": "cls-7b", "dueDate": "2025-09-20T16:59:00.000Z", "maxPoints": 100},
]

GRADES = [
    {"id": "g-001", "studentUsername": "budi", "assignmentId": "asg-001", "points": 85, "gradedAt": "2025-09-02T03:00:00.000Z"},
    {"id": "g-002", "studentUsername": "ani", "assignmentId": "asg-001", "value": "92", "gradedAt": "2025-09-02T03:05:00.000Z"},
    {"id": "g-003", "studentUsername": "budi", "assignmentId": "asg-002", "score": "78.5", "gradedAt": "2025-09-16T02:00:00.000Z"},
    {"id": "g-004", "studentUsername": "citra", "assignmentId": "asg-003", "points": 88, "gradedAt": "2025-09-21T04:00:00.000Z"},
    {"id": "g-005", "studentUsername": "budi", "assignmentId": "asg-deleted", "points": 40, "gradedAt": "2025-08-20T04:00:00.000Z"},
]

ATTENDANCE = [
    {"id": "att-001", "date": "2025-09-01", "classId": "cls-7a", "studentUsername": "budi", "status": "hadir"},
    {"id": "att-002", "date": "2025-09-01", "classId": "cls-7a", "studentUsername": "ani", "status": "present"},
    {"id": "att-003", "date": "2025-09-02", "classId": "cls-7a", "studentUsername": "budi", "status": "absent"},
    {"id": "att-004", "date": "2025-09-02", "classId": "cls-7a", "studentUsername": "ani", "status": "sakit"},
    {"id": "att-005", "date": "2025-09-02", "classId": "cls-7b", "studentUsername": "citra", "status": "izin"},
]

GAMIFICATION = [
    {"classId": "cls-7a", "studentUsername": "budi", "points": 120, "level": 2, "badges": "Rajin, Juara Kuis", "achievements": ""},
    {"classId": "cls-7a", "studentUsername": "ani", "points": 120, "level": 2, "badges": "Rajin", "achievements": "Streak 7 Hari"},
    {"classId": "cls-7b", "studentUsername": "citra", "points": "45", "level": "1", "badges": ""},
    {"classId": "", "studentUsername": "dodi", "points": "", "level": ""},
]

BADGES = [
    {"id": 1, "name": "Rajin", "description": "Hadir 10 hari berturut-turut", "icon": "📚", "category": "attendance", "pointValue": 50},
    {"id": 2, "name": "Juara Kuis", "description": "Nilai kuis sempurna", "icon": "🥇", "category": "achievement", "pointValue": 100},
]

COLLECTIONS = {
    "classes": CLASSES,
    "students": STUDENTS,
    "assignments": ASSIGNMENTS,
    "grades": GRADES,
    "attendance": ATTENDANCE,
    "gamification": GAMIFICATION,
    "badges": BADGES,
}
