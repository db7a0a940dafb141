from ecoreport.models.points import Reward
from ecoreport.services.points_service import EARNED_REPORT, credit_points, redeem_points
from ecoreport.services.queries import get_all_rewards, get_available_rewards, get_recent_reports
from ecoreport.services.report_service import create_report


async def test_leaderboard_orders_by_points_then_user(db, make_user):
    a = await make_user("a@example.com", "A")
    b = await make_user("b@example.com", "B")
    c = await make_user("c@example.com", "C")
    # insert out of order so ties are not resolved by insertion order
    await credit_points(db, c, 50, EARNED_REPORT, "x")
    await credit_points(db, b, 100, EARNED_REPORT, "x")
    await credit_points(db, a, 100, EARNED_REPORT, "x")
    db.add(Reward(name="Catalog", points=1000, collection_info=""))
    await db.flush()

    rows = await get_all_rewards(db)
    assert [(r["user_name"], r["points"]) for r in rows] == [("A", 100), ("B", 100), ("C", 50)]
    assert rows[0]["user_id"] == a


async def test_recent_reports_newest_first(db, make_user):
    uid = await make_user("a@example.com")
    ids = [(await create_report(db, uid, f"Spot {i}", "plastic", "1 kg")).id for i in range(12)]
    recent = await get_recent_reports(db)
    assert [r.id for r in recent] == list(reversed(ids))[:10]
    assert len(await get_recent_reports(db, limit=3)) == 3


async def test_available_rewards_starts_with_own_balance(db, make_user):
    uid = await make_user("a@example.com")
    db.add_all([
        Reward(name="Tree", points=100, collection_info="email"),
        Reward(name="Bag", points=50, collection_info="shop"),
        Reward(name="Hidden", points=10, collection_info="", is_available=False),
    ])
    await credit_points(db, uid, 80, EARNED_REPORT, "x")
    await redeem_points(db, uid, 0)
    await credit_points(db, uid, 30, EARNED_REPORT, "x")

    rewards = await get_available_rewards(db, uid)
    assert rewards[0]["id"] == 0
    assert rewards[0]["name"] == "Your Points"
    assert rewards[0]["cost"] == 30
    assert [r["name"] for r in rewards[1:]] == ["Bag", "Tree"]
