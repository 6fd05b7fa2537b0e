"""
Beijing Fushengji - Streamlit Web App
=====================================
Browser front end for the trading game. All rules live in engine.py;
this file only renders state and forwards clicks to the state manager.
"""

import streamlit as st
import pandas as pd
import matplotlib.pyplot as plt
import numpy as np

from analytics import Analytics
from audio import NullAudio
from catalog import GOODS, STOCKS, locations_in, BEIJING, SHANGHAI
from engine import GameEngine
from game_config import GAME_CONSTANTS, configure_logging, load_settings
from leaderboard import LeaderboardClient
from models import EventType, money
from prices import PriceGenerator
from simulation import SimulationSettings, compute_detailed_stats, run_monte_carlo
from state_manager import GameStateManager
from storage import JsonFileStorage

# ==================== Page Config ====================

st.set_page_config(
    page_title="北京浮生记",
    page_icon="🏙️",
    layout="wide",
    initial_sidebar_state="expanded"
)

CITY_NAMES = {BEIJING: "北京", SHANGHAI: "上海"}


# ==================== Session State Initialization ====================

def build_manager():
    settings = load_settings()
    configure_logging(settings.log_level)
    manager = GameStateManager(
        engine=GameEngine(),
        storage=JsonFileStorage(settings.save_path),
        # the browser plays no server-side sound
        audio=NullAudio(),
        analytics=Analytics(settings.ga_measurement_id, settings.ga_api_secret),
        leaderboard=LeaderboardClient(settings.leaderboard_api_base, settings.leaderboard_timeout),
    )
    if manager.has_saved_game():
        manager.load_game()
    else:
        manager.new_game()
    return manager


if "manager" not in st.session_state:
    st.session_state.manager = build_manager()
    st.session_state.event_log = []

if "mc_results" not in st.session_state:
    st.session_state.mc_results = None

manager = st.session_state.manager
gs = manager.get_state()


def show_result(result, success_message):
    if result.success:
        st.session_state.event_log.append(success_message)
        st.rerun()
    else:
        st.error(result.error)


# ==================== Sidebar ====================

with st.sidebar:
    st.title("🏙️ 北京浮生记")
    st.markdown(f"*{gs.player_name or GAME_CONSTANTS.default_player_name}*")

    st.divider()

    st.metric("剩余天数", f"{max(0, gs.time_left)} / {GAME_CONSTANTS.starting_time}")
    st.metric("现金", money(gs.cash))
    st.metric("存款", money(gs.bank))
    st.metric("债务", money(gs.debt))
    st.metric("健康", gs.health)
    st.metric("名声", gs.fame)
    st.metric("容量", f"{gs.total_items()} / {gs.capacity}")
    st.metric("总资产", money(manager.calculate_score()))

    st.divider()

    def rename():
        manager.set_player_name(st.session_state.player_name_input)

    st.text_input("玩家名字", value=gs.player_name, max_chars=32, key="player_name_input", on_change=rename)

    hacking = st.checkbox("黑客模式", value=gs.hacking_enabled)
    if hacking != gs.hacking_enabled:
        manager.toggle_hacking()
        st.rerun()

    if st.button("🔄 新游戏", use_container_width=True):
        manager.new_game()
        st.session_state.event_log = []
        st.session_state.mc_results = None
        st.rerun()

    st.download_button("💾 导出存档", manager.export_save(), file_name="fushengji-save.json",
                       use_container_width=True)
    uploaded = st.file_uploader("导入存档", type=["json"])
    if uploaded is not None and st.button("导入", use_container_width=True):
        if manager.import_save(uploaded.getvalue().decode("utf-8")):
            st.rerun()
        else:
            st.error("存档无效或版本不兼容")

    st.divider()

    st.caption("Built with Streamlit | Engine: engine.py")

# ==================== Main Content ====================

location_name = gs.current_location.name if gs.current_location else "-"
st.title(f"📍 {CITY_NAMES[gs.city]} · {location_name}")

if manager.is_game_over():
    over = manager.get_game_over_event()
    if manager.is_dead():
        st.error(over.message, icon="💀")
    else:
        st.success(over.message, icon="🎉")

    st.metric("最终得分", money(over.data["final_score"]))

    col1, col2 = st.columns(2)
    with col1:
        if st.button("🏆 上传成绩", use_container_width=True):
            record = manager.submit_final_score()
            if record:
                st.success(f"成绩已上传：{record.get('playerName')} {money(int(record.get('totalWealth', 0)))}")
            else:
                st.warning("上传失败，请稍后再试")
    with col2:
        if st.button("📋 排行榜", use_container_width=True):
            items = manager.fetch_leaderboard()
            if items:
                st.dataframe(pd.DataFrame(items), use_container_width=True, hide_index=True)
            else:
                st.info("暂时无法获取排行榜")

else:
    # Market
    st.subheader("🛒 黑市")

    market_rows = []
    for good in GOODS:
        item = gs.inventory[good.id]
        market_rows.append({
            "商品": good.name,
            "价格": PriceGenerator.format_price(gs.market_prices[good.id]),
            "持有": item.quantity,
            "成本": money(item.avg_price) if item.quantity else "-",
        })
    st.dataframe(pd.DataFrame(market_rows), use_container_width=True, hide_index=True)

    col1, col2 = st.columns(2)

    with col1:
        with st.form("buy_form"):
            available = [g for g in GOODS if gs.market_prices[g.id] > 0]
            good = st.selectbox("买入商品", available, format_func=lambda g: g.name)
            max_qty = manager.get_max_affordable(good.id) if good else 0
            qty = st.number_input(f"数量（最多 {max_qty}）", min_value=1, value=max(1, max_qty), step=1)
            if st.form_submit_button("买入", use_container_width=True) and good:
                show_result(manager.buy_good(good.id, int(qty)), f"买入 {good.name} x{int(qty)}")

    with col2:
        with st.form("sell_form"):
            held = [g for g in GOODS if gs.inventory[g.id].quantity > 0]
            good = st.selectbox("卖出商品", held, format_func=lambda g: g.name)
            held_qty = gs.inventory[good.id].quantity if good else 1
            qty = st.number_input("数量", min_value=1, max_value=max(1, held_qty), value=max(1, held_qty), step=1)
            if good:
                st.caption(f"预计盈亏：{money(manager.calculate_profit(good.id, int(qty)))}")
            if st.form_submit_button("卖出", use_container_width=True) and good:
                show_result(manager.sell_good(good.id, int(qty)), f"卖出 {good.name} x{int(qty)}")

    st.divider()

    # Bank & services
    st.subheader("🏦 银行 / 邮局 / 医院")
    b1, b2, b3, b4 = st.columns(4)

    with b1:
        amount = st.number_input("存款金额", min_value=0, value=gs.cash, step=100, key="deposit")
        if st.button("存钱", use_container_width=True):
            show_result(manager.deposit_bank(int(amount)), f"存入 {money(int(amount))}")

    with b2:
        amount = st.number_input("取款金额", min_value=0, value=gs.bank, step=100, key="withdraw")
        if st.button("取钱", use_container_width=True):
            show_result(manager.withdraw_bank(int(amount)), f"取出 {money(int(amount))}")

    with b3:
        amount = st.number_input("还款金额", min_value=0, value=gs.debt, step=100, key="repay")
        if st.button("还债", use_container_width=True):
            show_result(manager.pay_debt(int(amount)), f"还债 {money(int(amount))}")

    with b4:
        headroom = GAME_CONSTANTS.max_health - gs.health
        points = st.number_input("治疗点数", min_value=0, value=headroom, step=1)
        st.caption(f"每点 {money(GAME_CONSTANTS.hospital_cost_per_hp)}")
        if st.button("看病", use_container_width=True):
            show_result(manager.visit_hospital(int(points)), f"恢复 {int(points)} 点健康")

    s1, s2 = st.columns(2)
    with s1:
        if st.button("🏠 租房 (+10 容量)", use_container_width=True):
            result = manager.rent_house()
            show_result(result, f"租房花费 {money(result.value or 0)}")
    with s2:
        if st.button(f"💻 网吧 ({gs.wangba_visits}/{GAME_CONSTANTS.max_wangba_visits})", use_container_width=True):
            result = manager.visit_wangba()
            show_result(result, f"网吧收入 {money(result.value or 0)}")

    st.divider()

    # Stock market
    if manager.engine.stocks_enabled and gs.stock_prices:
        st.subheader("📈 股市")

        stock = st.selectbox("股票", STOCKS, format_func=lambda s: f"{s.name}  {money(gs.stock_prices[s.id])}")
        candles = gs.stock_history[stock.id] if stock.id < len(gs.stock_history) else []
        if candles:
            fig, ax = plt.subplots(figsize=(10, 3))
            for i, c in enumerate(candles):
                color = '#D64545' if c.close >= c.open else '#2E9E5B'
                ax.vlines(i, c.low, c.high, color=color, linewidth=1)
                ax.bar(i, max(abs(c.close - c.open), 0.5), bottom=min(c.open, c.close), color=color, width=0.6)
            ax.set_title(stock.name)
            ax.grid(alpha=0.3)
            st.pyplot(fig)
            plt.close(fig)

        holding = gs.stock_holdings[stock.id]
        st.caption(f"持有 {holding.shares} 股，成本 {money(holding.avg_price)}")
        t1, t2 = st.columns(2)
        with t1:
            shares = st.number_input("买入股数", min_value=1, value=1, step=1)
            if st.button("买入股票", use_container_width=True):
                show_result(manager.buy_stock(stock.id, int(shares)), f"买入 {stock.name} {int(shares)} 股")
        with t2:
            shares = st.number_input("卖出股数", min_value=1, value=max(1, holding.shares), step=1)
            if st.button("卖出股票", use_container_width=True):
                show_result(manager.sell_stock(stock.id, int(shares)), f"卖出 {stock.name} {int(shares)} 股")

        st.divider()

    # Travel
    st.subheader("🚇 出行")
    destinations = [loc for city in (BEIJING, SHANGHAI) for loc in locations_in(city)
                    if gs.current_location is None or loc.id != gs.current_location.id]
    destination = st.selectbox(
        "目的地", destinations,
        format_func=lambda loc: f"{CITY_NAMES[loc.city]} · {loc.name}  ({money(manager.travel_cost(loc))})",
    )
    if st.button("▶️ 出发", use_container_width=True, type="primary"):
        result = manager.travel(destination)
        if result.success:
            manager.play_event_sounds(result.value)
            for event in result.value:
                prefix = "⚠️ " if event.type in (EventType.WARNING, EventType.GAME_OVER) else ""
                st.session_state.event_log.append(prefix + event.message)
            st.rerun()
        else:
            st.error(result.error)

# Event feed (last 10)
if st.session_state.event_log:
    with st.expander("📜 消息 (最近10条)", expanded=True):
        for line in reversed(st.session_state.event_log[-10:]):
            st.text(line)

# ==================== Monte Carlo Section ====================

st.divider()
st.header("🎲 Monte Carlo Simulation")

col1, col2, col3 = st.columns([2, 1, 1])

with col1:
    sims = st.slider("Number of simulations", 100, 2000, 500, step=100)

with col2:
    mc_hacking = st.checkbox("Hacking", value=False)

with col3:
    run_mc = st.button("▶️ Run Monte Carlo", use_container_width=True, type="primary")

if run_mc:
    with st.spinner(f"Running {sims} simulations..."):
        st.session_state.mc_results = run_monte_carlo(sims, SimulationSettings(hacking_enabled=mc_hacking))
    st.success(f"Completed {sims} simulations!")

if st.session_state.mc_results:
    mc = st.session_state.mc_results
    stats = compute_detailed_stats(mc['results'])

    m1, m2, m3 = st.columns(3)
    with m1:
        st.metric("Positive score rate", f"{mc['win_rate']*100:.1f}%")
    with m2:
        st.metric("Median score", money(int(mc['median_score'])))
    with m3:
        st.metric("Deaths", stats['outcomes'].get('death', 0))

    scores = [r['score'] for r in mc['results']]
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 4))
    ax1.hist(scores, bins=30, color='#4ECDC4', edgecolor='black', alpha=0.7)
    ax1.axvline(np.median(scores), color='red', linestyle='--', linewidth=2, label=f'Median: {np.median(scores):,.0f}')
    ax1.set_xlabel('Score')
    ax1.set_ylabel('Frequency')
    ax1.set_title('Score Distribution')
    ax1.legend()
    ax1.grid(alpha=0.3)

    freqs = stats['event_frequencies']
    ax2.bar(list(freqs.keys()), list(freqs.values()), color='#FF6B6B', edgecolor='black')
    ax2.set_title('Events per game')
    ax2.tick_params(axis='x', rotation=45)
    ax2.grid(alpha=0.3, axis='y')

    plt.tight_layout()
    st.pyplot(fig)

    s = stats['score_stats']
    stats_df = pd.DataFrame({
        'Metric': ['Mean', 'Median', 'Std Dev', 'P5', 'P25', 'P75', 'P95'],
        'Score': [f"{s[k]:,.0f}" for k in ('mean', 'median', 'std', 'p5', 'p25', 'p75', 'p95')],
    })
    st.dataframe(stats_df, use_container_width=True, hide_index=True)

# ==================== Footer ====================

st.divider()
st.caption("北京浮生记 | Powered by Streamlit | Logic: engine.py (headless)")
