# farmtrack/sample.py
"""Demo records written into empty stores on first start, in stored (wire) form."""

CREATED = "2024-03-01T08:00:00Z"

FARMS = [
    {"Id": 1, "name": "Green Valley Farm", "location": "Sacramento, CA", "size": 150, "unit": "acres", "createdAt": CREATED},
    {"Id": 2, "name": "Sunrise Orchards", "location": "Fresno, CA", "size": 45, "unit": "hectares", "createdAt": CREATED},
    {"Id": 3, "name": "Prairie Fields", "location": "Ames, IA", "size": 320, "unit": "acres", "createdAt": CREATED},
]

CROPS = [
    {"Id": 1, "farmId": 1, "cropType": "Corn", "plantingDate": "2024-04-15", "fieldLocation": "North Field",
     "status": "growing", "expectedHarvest": "2024-09-20", "notes": "Drip irrigation installed", "createdAt": CREATED},
    {"Id": 2, "farmId": 1, "cropType": "Tomatoes", "plantingDate": "2024-05-01", "fieldLocation": "Greenhouse A",
     "status": "planted", "expectedHarvest": "2024-08-10", "notes": None, "createdAt": CREATED},
    {"Id": 3, "farmId": 2, "cropType": "Apples", "plantingDate": "2024-03-10", "fieldLocation": "Orchard Block 2",
     "status": "ready", "expectedHarvest": "2024-08-30", "notes": "Check for codling moth", "createdAt": CREATED},
    {"Id": 4, "farmId": 3, "cropType": "Soybeans", "plantingDate": "2024-05-20", "fieldLocation": "East Section",
     "status": "harvested", "expectedHarvest": "2024-10-05", "notes": None, "createdAt": CREATED},
]

TASKS = [
    {"Id": 1, "farmId": 1, "title": "Irrigate north field", "description": "Run drip lines for 2 hours",
     "dueDate": "2024-06-10", "priority": "high", "completed": False, "completedAt": None, "createdAt": CREATED},
    {"Id": 2, "farmId": 1, "title": "Apply fertilizer", "description": None,
     "dueDate": "2024-06-18", "priority": "medium", "completed": False, "completedAt": None, "createdAt": CREATED},
    {"Id": 3, "farmId": 2, "title": "Prune apple trees", "description": "Block 2 only",
     "dueDate": "2024-05-28", "priority": "low", "completed": True, "completedAt": "2024-05-27T16:30:00Z",
     "createdAt": CREATED},
    {"Id": 4, "farmId": 3, "title": "Service combine", "description": None,
     "dueDate": "2024-09-15", "priority": "medium", "completed": False, "completedAt": None, "createdAt": CREATED},
]

EXPENSES = [
    {"Id": 1, "farmId": 1, "amount": "1250.00", "category": "seeds", "date": "2024-04-02",
     "description": "Hybrid corn seed", "createdAt": CREATED},
    {"Id": 2, "farmId": 1, "amount": "430.50", "category": "fertilizer", "date": "2024-05-14",
     "description": "Nitrogen blend", "createdAt": CREATED},
    {"Id": 3, "farmId": 2, "amount": "89.99", "category": "equipment", "date": "2024-05-20",
     "description": "Pruning shears", "createdAt": CREATED},
    {"Id": 4, "farmId": 3, "amount": "215.75", "category": "fuel", "date": "2024-06-01",
     "description": "Diesel for tractor", "createdAt": CREATED},
]

SAMPLE_DATA = {"farms": FARMS, "crops": CROPS, "tasks": TASKS, "expenses": EXPENSES}
