"""SQLite 数据库初始化

PRAGMA 配置 + 表 DDL + 索引创建。
使用 aiosqlite 异步操作。

task_instances.plan_id 不设外键：计划删除后、级联删除完成前允许短暂悬空。
"""

import aiosqlite

# maintenance_plans 表 DDL
_PLANS_DDL = """
CREATE TABLE IF NOT EXISTS maintenance_plans (
    plan_id         TEXT PRIMARY KEY,
    asset_id        TEXT NOT NULL,
    plan_name       TEXT NOT NULL DEFAULT '',
    frequency       TEXT,
    start_date      TEXT,
    tasks           TEXT NOT NULL DEFAULT '[]',
    is_active       INTEGER NOT NULL DEFAULT 1,
    assigned_to     TEXT,
    last_generated  TEXT
);
"""

_PLANS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_plans_active ON maintenance_plans(is_active);",
]

# task_instances 表 DDL
_TASK_INSTANCES_DDL = """
CREATE TABLE IF NOT EXISTS task_instances (
    task_id           TEXT PRIMARY KEY,
    plan_id           TEXT NOT NULL,
    asset_id          TEXT NOT NULL,
    task_description  TEXT NOT NULL,
    due_date          TEXT NOT NULL,
    status            TEXT NOT NULL DEFAULT 'Pending',
    archived          INTEGER NOT NULL DEFAULT 0,
    archived_at       TEXT,
    type              TEXT NOT NULL DEFAULT 'Preventive',
    assigned_to       TEXT,
    priority          TEXT NOT NULL DEFAULT 'Medium',
    created_at        TEXT NOT NULL,
    created_by        TEXT NOT NULL DEFAULT 'system_scheduler',
    updated_at        TEXT NOT NULL
);
"""

_TASK_INSTANCES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_instances_plan_id ON task_instances(plan_id);",
    # 去重查询：(plan_id, due_date, task_description)
    (
        "CREATE INDEX IF NOT EXISTS idx_instances_plan_due_desc "
        "ON task_instances(plan_id, due_date, task_description);"
    ),
    # 保留期清理：archived = 1 按 archived_at 升序
    (
        "CREATE INDEX IF NOT EXISTS idx_instances_archived_at "
        "ON task_instances(archived, archived_at);"
    ),
]

# work_orders 表 DDL
_WORK_ORDERS_DDL = """
CREATE TABLE IF NOT EXISTS work_orders (
    work_order_id  TEXT PRIMARY KEY,
    status         TEXT NOT NULL DEFAULT '',
    due_date       TEXT
);
"""

# users 表 DDL
_USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    user_id       TEXT PRIMARY KEY,
    display_name  TEXT NOT NULL DEFAULT '',
    created_at    TEXT NOT NULL
);
"""

# documents 表 DDL（单例文档，"collection/doc_id" 为键）
_DOCUMENTS_DDL = """
CREATE TABLE IF NOT EXISTS documents (
    doc_id      TEXT PRIMARY KEY,
    data        TEXT NOT NULL DEFAULT '{}',
    updated_at  TEXT NOT NULL
);
"""


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_PLANS_DDL)
    await conn.execute(_TASK_INSTANCES_DDL)
    await conn.execute(_WORK_ORDERS_DDL)
    await conn.execute(_USERS_DDL)
    await conn.execute(_DOCUMENTS_DDL)

    # 创建索引
    for idx_sql in _PLANS_INDEXES + _TASK_INSTANCES_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
