"""
Event tables (game balance data).

Frequencies feed the ``random_int(modulus) % freq == 0`` roll: the lower the
frequency, the more often the event fires.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from catalog import GOOD_COUNT, STOCK_COUNT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommercialEvent:
    """Market news: price multiplier/divisor and/or free goods"""
    freq: int
    msg: str
    good_id: int
    plus: int = 0   # price multiplier (0 = unused)
    minus: int = 0  # price divisor (0 = unused)
    add: int = 0    # free quantity granted
    extra_debt: int = 0


@dataclass(frozen=True)
class StockEvent:
    """Market news moving a single stock"""
    freq: int
    msg: str
    stock_id: int
    factor: float


@dataclass(frozen=True)
class HealthEvent:
    freq: int
    msg: str
    damage: int
    sound: str


@dataclass(frozen=True)
class TheftEvent:
    freq: int
    msg: str
    ratio: int  # percent of cash (or bank) lost
    targets_bank: bool = False
    fixed_loss: int = 0
    sound: Optional[str] = None


COMMERCIAL_EVENTS: List[CommercialEvent] = [
    CommercialEvent(170, "专家预测明年大学生对手机的需求将会激增!", 5, plus=2),
    CommercialEvent(139, "卫生局官员说，今后工商部局将严查假冒伪劣，加紧打假!", 3, plus=3),
    CommercialEvent(93, "市场上出现了一批非常受欢迎的新款手机，并且价格十分便宜!", 1, minus=3),
    CommercialEvent(99, "世界环保组织发表报告，北京工厂对能源的浪费让人触目惊心!", 4, plus=5),
    CommercialEvent(45, "市民连夜排队购买新上市的数码游戏机!", 2, plus=4),
    CommercialEvent(57, "北京网友在网上发表文章，强烈谴责盗版VCD行为!", 2, minus=5),
    CommercialEvent(17, "最新的股市价格指数显示，北京股市一路狂跌，股民损失惨重!", 0, minus=8),
    CommercialEvent(49, "北京市长在会议上承诺要加速燃料汽车的淘汰进程!", 4, minus=6),
    CommercialEvent(80, "欧洲市场传来消息，名贵丝绸在欧洲狂卖，连带效应致使价格飞涨!", 5, plus=7),
    CommercialEvent(83, "欧洲市场传来消息，东方名茶在欧洲狂卖，连带效应致使价格飞涨!", 3, plus=7),
    CommercialEvent(91, "美国商人在亚洲开办了多家大型连锁店，对个人商贩造成威胁!", 7, minus=7),
    CommercialEvent(160, "火车站附近有一批无人认领的古董瓷器，你赶到后也分了一份!", 0, add=2),
    CommercialEvent(190, "某工厂甩卖抵帐水晶手镯，你赶到后也抢到了一只!", 6, add=1),
    CommercialEvent(110, "居委会给你送了一部旧手机，你接受了!", 1, add=1),
    CommercialEvent(123, "你遇到一个陌生人向你推销盗版VCD游戏，价格十分便宜，你买了一些!", 2, add=5),
    CommercialEvent(102, "一群市民簇拥着你，往你手里塞报纸，你也不好意思拒绝!", 7, add=3),
    CommercialEvent(127, "工商局官员说，目前市场上有很多古董瓷器都是仿制的假货!", 0, minus=5),
    CommercialEvent(140, "一个陌生人给了你一个水晶手镯，并表示感谢你帮他还债!", 6, add=1, extra_debt=2500),
]

STOCK_EVENTS: List[StockEvent] = [
    StockEvent(180, "京华地产获得市中心地块开发权，股价大涨!", 0, 1.30),
    StockEvent(150, "央行收紧信贷，浦江银行股价承压下跌!", 1, 0.75),
    StockEvent(120, "华夏芯片宣布技术突破，投资者疯狂抢购!", 2, 1.50),
    StockEvent(160, "神州汽车大规模召回，股价应声下跌!", 3, 0.70),
    StockEvent(200, "国际油价暴涨，东海航运成本激增!", 4, 0.80),
    StockEvent(190, "燕山酒业年报超预期，机构纷纷加仓!", 5, 1.25),
    StockEvent(140, "申城医药新药获批上市，股价涨停!", 6, 1.40),
    StockEvent(170, "环保督查组进驻，中原煤业停产整顿!", 7, 0.60),
    StockEvent(210, "南方传媒爆出财务造假传闻，股价闪崩!", 8, 0.55),
    StockEvent(130, "星海游戏新作登顶下载榜，股价翻倍!", 9, 2.00),
]

HEALTH_EVENTS: List[HealthEvent] = [
    HealthEvent(117, "你在和一个小贩讨价还价时，竟然被他打了一拳!", 3, "kill"),
    HealthEvent(157, "路上遇到两伙黑社会火拼，你被流弹击中!", 20, "death"),
    HealthEvent(21, "警察带着警犬过来检查工作，警犬咬了你一口!", 1, "dog"),
    HealthEvent(100, "正在马路上行走的时候，突然被一辆摩托车撞倒!", 1, "harley"),
    HealthEvent(35, "被小混混打了一顿!", 1, "hit"),
    HealthEvent(313, "你被一群暴徒殴打!", 10, "flee"),
    HealthEvent(120, "路遇抢劫，被人打了一顿!", 5, "death"),
    HealthEvent(29, "你在楼梯上被一伙歹徒推倒!", 3, "el"),
    HealthEvent(43, "在路边的小吃摊吃坏了肚子!", 1, "vomit"),
    HealthEvent(45, "在黑市购买到假货被骗，气得不笑不笑!", 1, "level"),
    HealthEvent(48, "被小偷偷走了40元!", 1, "lan"),
    HealthEvent(33, "在大街上被流氓骚扰，吓出了一身冷汗!", 1, "breath"),
]

THEFT_EVENTS: List[TheftEvent] = [
    TheftEvent(60, "糟糕！在百货大楼遇到扒手，被偷走了10%的现金!", 10),
    TheftEvent(125, "一个小偷在街头盯住了你，抢走了你的钱!", 10),
    TheftEvent(100, "一个陌生人把你打了一顿，说是认错人了!", 40),
    TheftEvent(65, "你被流氓婆太太缠住了，不给钱不让走!", 20),
    TheftEvent(35, "接到电信诈骗电话，损失了15%的存款!", 15, targets_bank=True),
    TheftEvent(27, "黑车司机说你没带驾照？不拿出钱来就去找警察吧!", 10, targets_bank=True),
    TheftEvent(40, "你在大街上被人讹诈，去医院看病花了一笔钱...", 5),
]

EVENT_COUNTS = {
    "commercial": len(COMMERCIAL_EVENTS),
    "stock": len(STOCK_EVENTS),
    "health": len(HEALTH_EVENTS),
    "theft": len(THEFT_EVENTS),
}


def validate_events() -> bool:
    """Range-check the tables (good ids, damage 1-30, theft ratio 1-100)"""
    for event in COMMERCIAL_EVENTS:
        if not 0 <= event.good_id < GOOD_COUNT:
            logger.error(f"Invalid good id in commercial event: {event.good_id}")
            return False
    for event in STOCK_EVENTS:
        if not 0 <= event.stock_id < STOCK_COUNT or event.factor <= 0:
            logger.error(f"Invalid stock event: {event.stock_id} x{event.factor}")
            return False
    for event in HEALTH_EVENTS:
        if event.damage <= 0 or event.damage > 30:
            logger.error(f"Invalid health damage in health event: {event.damage}")
            return False
    for event in THEFT_EVENTS:
        if event.ratio <= 0 or event.ratio > 100:
            logger.error(f"Invalid theft ratio in theft event: {event.ratio}")
            return False
    return True
