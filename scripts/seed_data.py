#!/usr/bin/env python3
"""
Seed script: fill a running Todo Store with demo categories, tags and tasks.

Запуск (сервер должен быть запущен):
    uvicorn src.main:app
    python scripts/seed_data.py
"""

from datetime import date, timedelta

import requests

API_URL = "http://localhost:8000/api/v1"
API_KEY = "dev-api-key-change-in-production"
HEADERS = {"X-API-Key": API_KEY, "Content-Type": "application/json"}

# Категории: (название, родитель)
CATEGORIES = [
    ("Здоровье", None),
    ("Тренировки", "Здоровье"),
    ("Семья", None),
    ("Обучение", None),
]

TAGS = [
    {"name": "urgent", "color": "#EF4444"},
    {"name": "home", "color": "#10B981"},
    {"name": "reading", "color": "#3B82F6"},
]

TODAY = date.today()

TASKS = {
    "Здоровье": [
        {"title": "Записаться к врачу", "priority": "high", "offset": 1, "tags": ["urgent"]},
        {"title": "Витамины", "offset": 0, "repeat": {"type": "daily", "interval": 1}},
    ],
    "Тренировки": [
        {
            "title": "Зал",
            "time": "07:30",
            "offset": 0,
            "repeat": {"type": "daily", "interval": 2},
        },
    ],
    "Семья": [
        {"title": "Оплатить коммуналку", "offset": 3, "repeat": {"type": "monthly", "interval": 1},
         "tags": ["home"]},
        {"title": "Купить продукты", "priority": "low", "offset": 0, "tags": ["home"]},
    ],
    "Обучение": [
        {"title": "Прочитать главу книги", "offset": 2, "tags": ["reading"]},
    ],
}


def create_category(name, parent_id):
    """Create a category via API."""
    response = requests.post(
        f"{API_URL}/categories", headers=HEADERS, json={"name": name, "parentId": parent_id}
    )
    if response.status_code == 201:
        return response.json()
    print(f"Error creating category {name}: {response.text}")
    return None


def create_tag(tag_data):
    """Create (or get) a tag via API."""
    response = requests.post(f"{API_URL}/tags", headers=HEADERS, json=tag_data)
    if response.status_code == 201:
        return response.json()
    print(f"Error creating tag {tag_data['name']}: {response.text}")
    return None


def create_task(task_data, category_id, tag_ids):
    """Create a task via API."""
    task_payload = {
        "title": task_data["title"],
        "date": (TODAY + timedelta(days=task_data.get("offset", 0))).isoformat(),
        "priority": task_data.get("priority", "medium"),
        "categoryId": category_id,
        "tagIds": [tag_ids[name] for name in task_data.get("tags", []) if name in tag_ids],
    }

    if "time" in task_data:
        task_payload["time"] = task_data["time"]

    if "repeat" in task_data:
        task_payload["repeat"] = task_data["repeat"]

    response = requests.post(f"{API_URL}/tasks", headers=HEADERS, json=task_payload)
    if response.status_code == 201:
        return response.json()
    print(f"Error creating task {task_data['title']}: {response.text}")
    return None


def main():
    print("=" * 60)
    print("Seeding Todo Store with demo data")
    print("=" * 60)

    category_ids = {}
    print("\n📁 Creating categories...")
    for name, parent_name in CATEGORIES:
        category = create_category(name, category_ids.get(parent_name))
        if category:
            category_ids[name] = category["id"]
            print(f"  ✅ {name} (id={category['id']})")

    tag_ids = {}
    print("\n🏷  Creating tags...")
    for tag_data in TAGS:
        tag = create_tag(tag_data)
        if tag:
            tag_ids[tag_data["name"]] = tag["id"]
            print(f"  ✅ {tag_data['name']}")

    print("\n📋 Creating tasks...")
    total_tasks = 0
    for category_name, tasks in TASKS.items():
        if category_name not in category_ids:
            print(f"  ⚠️ Category {category_name} not found, skipping tasks")
            continue

        print(f"\n  📁 {category_name}:")
        for task_data in tasks:
            task = create_task(task_data, category_ids[category_name], tag_ids)
            if task:
                total_tasks += 1
                repeat = " 🔁" if task.get("repeat") else ""
                print(f"    ✅ {task_data['title']} ({task['date']}){repeat}")

    print("\n" + "=" * 60)
    print(f"✅ Done! Created {len(category_ids)} categories and {total_tasks} tasks")
    print("=" * 60)


if __name__ == "__main__":
    main()
