"""Broadcast time slots and weekday labels offered at order entry."""

TIME_SLOTS = [
    {'period': 'ช่วงเช้า (08:00-10:00)', 'slots': ['08:00-08:30', '08:30-09:00', '09:00-09:30', '09:30-10:00']},
    {'period': 'ช่วงสาย (10:00-12:00)', 'slots': ['10:00-10:30', '10:30-11:00', '11:00-11:30', '11:30-12:00']},
    {'period': 'ช่วงเที่ยง (12:00-14:00)', 'slots': ['12:00-12:30', '12:30-13:00', '13:00-13:30', '13:30-14:00']},
    {'period': 'ช่วงบ่าย (14:00-16:00)', 'slots': ['14:00-14:30', '14:30-15:00', '15:00-15:30', '15:30-16:00']},
    {'period': 'ช่วงเย็น (16:00-18:00)', 'slots': ['16:00-16:30', '16:30-17:00', '17:00-17:30', '17:30-18:00']},
]

ALL_TIME_SLOTS = [slot for period in TIME_SLOTS for slot in period['slots']]

# Sunday=0 .. Saturday=6
WEEKDAYS = [
    ('อา', 0),
    ('จ', 1),
    ('อ', 2),
    ('พ', 3),
    ('พฤ', 4),
    ('ศ', 5),
    ('ส', 6),
]
