"""Degradation policy: static replies for when generation is unavailable.

A pure lookup from (call site, failure kind, locale) to literal text. Quota
exhaustion gets a call-site specific fallback with real content (a basic
plan, general tips); any other failure gets a short "try again" message.

Without an explicit locale, quota messages default to Traditional Chinese and
other failures to English. The environment is read once by env_locale(), at
wiring time; the lookups themselves never consult it.
"""

import os
from enum import Enum

from src.agent.llm import FailureKind, GenerationFailure

LOCALES = ("zh-TW", "en")

DEFAULT_LOCALES = {
    FailureKind.QUOTA_EXCEEDED: "zh-TW",
    FailureKind.OTHER: "en",
}


class CallSite(Enum):
    PLAN_MEAL = "plan_meal"
    PLAN_WORKOUT = "plan_workout"
    ANALYZE = "analyze"
    EXTRACT = "extract"
    CHAT = "chat"


QUOTA_NOTICE = {
    "zh-TW": "⚠️ AI 配額已用完，現在使用備用回應模式。",
    "en": "⚠️ The AI service quota has been used up, so I'm replying in fallback mode.",
}

# -- Quota exhaustion ---------------------------------------------------------

_QUOTA_MEAL = {
    "zh-TW": """\
🍽️ **基本健康餐點建議**：

**早餐**：
• 燕麥粥配莓果和堅果
• 希臘優格
• 綠茶

**午餐**：
• 烤雞肉沙拉配蔬菜
• 藜麥
• 檸檬水

**晚餐**：
• 烤鮭魚
• 蒸蔬菜
• 糙米

**點心**：
• 蘋果配杏仁醬
• 綜合堅果

保持均衡飲食！🌟""",
    "en": """\
🍽️ **Basic Healthy Meal Ideas**:

**Breakfast**:
• Oatmeal with berries and nuts
• Greek yogurt
• Green tea

**Lunch**:
• Grilled chicken salad with vegetables
• Quinoa
• Lemon water

**Dinner**:
• Baked salmon
• Steamed vegetables
• Brown rice

**Snacks**:
• Apple with almond butter
• Mixed nuts

Keep your meals balanced! 🌟""",
}

_QUOTA_WORKOUT = {
    "zh-TW": """\
💪 **基本運動計劃**：

**熱身 (5分鐘)**：
• 輕慢跑
• 動態伸展

**主要運動 (25分鐘)**：
• 伏地挺身：3組，每組10次
• 深蹲：3組，每組15次
• 平板支撐：3組，每組30秒
• 弓箭步：3組，每邊10次

**緩和 (5分鐘)**：
• 靜態伸展
• 深呼吸

記得補充水分！💧""",
    "en": """\
💪 **Basic Workout Plan**:

**Warm-up (5 minutes)**:
• Light jog
• Dynamic stretches

**Main workout (25 minutes)**:
• Push-ups: 3 sets of 10
• Squats: 3 sets of 15
• Plank: 3 sets of 30 seconds
• Lunges: 3 sets of 10 per side

**Cool-down (5 minutes)**:
• Static stretches
• Deep breathing

Remember to stay hydrated! 💧""",
}

_QUOTA_ANALYZE = {
    "zh-TW": """\
📊 **基本健康習慣分析**

雖然無法使用 AI 進行詳細分析，但這裡有一些通用建議：

**建議追蹤的日常習慣：**
• 體重（重視一致性而非每日變化）
• 營養（均衡飲食）
• 運動（有氧和力量訓練結合）
• 水分攝取（每日 8-10 杯水）
• 睡眠（每晚 7-9 小時）

**快速小貼士：**
✅ 定期記錄活動以獲得更好的洞察
✅ 專注於進步，而非完美
✅ 慶祝小勝利

持續追蹤你的活動，等配額恢復後我會提供更個人化的分析！💪

請稍後再請我分析你的習慣。""",
    "en": """\
📊 **Basic Habit Review**

I can't run a detailed AI analysis right now, but here are some general tips:

**Daily habits worth tracking:**
• Weight (consistency matters more than daily changes)
• Nutrition (balanced meals)
• Exercise (mix cardio and strength training)
• Hydration (8-10 glasses of water daily)
• Sleep (7-9 hours nightly)

**Quick tips:**
✅ Log activities regularly for better insights
✅ Focus on progress, not perfection
✅ Celebrate small wins

Keep tracking, and once the quota recovers I'll give you a more personal analysis! 💪

Ask me to analyze your habits again a bit later.""",
}

_QUOTA_EXTRACT = {
    "zh-TW": """\
我已經收到你的活動訊息：「{message}」

雖然無法使用 AI 智能提取，但我仍然記錄了你的訊息。
請繼續記錄你的健康活動，等配額恢復後我會提供更好的數據提取功能！

你可以繼續：
• 記錄每日活動
• 詢問基本健康問題
• 要求簡單的建議

謝謝你的理解！💪""",
    "en": """\
I received your activity message: "{message}"

I can't extract the details with AI right now, but your message came through.
Keep logging your activities, and extraction will be back once the quota recovers!

You can still:
• Log daily activities
• Ask basic health questions
• Ask for simple suggestions

Thanks for understanding! 💪""",
}

_QUOTA_CHAT = {
    "zh-TW": """\
針對你的問題：「{message}」

以下是一些基本健康建議：

💤 **睡眠**：成人建議每晚 7-9 小時
💧 **水分**：每天 8-10 杯水 (約 2-2.5 公升)
🏃 **運動**：每週至少 150 分鐘中等強度運動
🍎 **飲食**：每天 5 份蔬果，均衡營養

我仍然可以幫你：
• 記錄活動數據
• 提供基本健康建議
• 回答常見健康問題

有其他問題請繼續問我！💪""",
    "en": """\
About your question: "{message}"

Here are some basic health guidelines:

💤 **Sleep**: adults need 7-9 hours a night
💧 **Water**: 8-10 glasses a day (about 2-2.5 liters)
🏃 **Exercise**: at least 150 minutes of moderate activity a week
🍎 **Food**: 5 servings of fruit and vegetables a day, balanced meals

I can still help you:
• Log activity data
• Share basic health advice
• Answer common health questions

Feel free to keep asking! 💪""",
}

# -- Other failures -----------------------------------------------------------

_OTHER_MEAL = {
    "zh-TW": "抱歉，我現在無法產生餐點計劃。請試著提出更具體的需求（例如「健康早餐建議」或「素食午餐計劃」）。",
    "en": (
        "Sorry, I'm having trouble generating a meal plan right now. Please try asking for a "
        "specific type of meal plan (like 'healthy breakfast ideas' or 'vegetarian lunch plan')."
    ),
}

_OTHER_WORKOUT = {
    "zh-TW": "抱歉，我現在無法產生運動計劃。請試著提出更具體的需求（例如「初學者居家運動」或「30分鐘有氧訓練」）。",
    "en": (
        "Sorry, I'm having trouble generating a workout plan right now. Please try asking for a "
        "specific type of workout (like 'beginner home workout' or '30-minute cardio routine')."
    ),
}

_OTHER_ANALYZE = {
    "zh-TW": """\
📊 健康分析

我現在無法產生詳細分析，但這裡有一些一般健康建議：

**建議追蹤的日常習慣：**
• 體重（重視一致性而非每日變化）
• 營養（均衡飲食）
• 運動（有氧和力量訓練結合）
• 水分攝取（每日 8-10 杯水）
• 睡眠（每晚 7-9 小時）

持續記錄活動，資料越多，我的建議就越個人化！💪

請稍後再請我分析你的習慣。""",
    "en": """\
📊 Health Analysis

I'm having trouble generating a detailed analysis right now, but here are some general health tips:

**Daily Habits to Track:**
• Weight (consistency matters more than daily changes)
• Nutrition (aim for balanced meals)
• Exercise (mix cardio and strength training)
• Hydration (8-10 glasses of water daily)
• Sleep (7-9 hours nightly)

**Quick Tips:**
✅ Log activities regularly for better insights
✅ Focus on progress, not perfection
✅ Celebrate small wins

Keep tracking your activities, and I'll provide more personalized insights as we gather more data! 💪

Try asking me to analyze your habits again later.""",
}

_OTHER_EXTRACT = {
    "zh-TW": "抱歉，我無法處理你的活動資料。請用更清楚的方式再試一次，例如「我今天體重70公斤，午餐吃了沙拉」。",
    "en": (
        "Sorry, I couldn't process your activity data. Please try again with a clearer format "
        "like 'I weighed 70kg today and had a salad for lunch'."
    ),
}

_OTHER_CHAT = {
    "zh-TW": """\
你好！👋 我是你的健康小幫手！

我可以幫你：
🍎 餐點規劃 - 問我「建議一份餐點計劃」
💪 運動計劃 - 說「我需要一份運動計劃」
📊 活動記錄 - 告訴我「我今天跑了5公里」
📈 健康分析 - 問我「分析我的習慣」

想了解哪些健康與運動的問題呢？💪""",
    "en": """\
Hello! 👋 I'm your health assistant!

I can help you with:
🍎 Meal planning - ask "suggest a meal plan"
💪 Workout plans - say "I need a workout plan"
📊 Activity logging - tell me "I ran 5km today"
📈 Health analysis - ask "analyze my habits"

What would you like to know about health and fitness? 💪""",
}

_FALLBACKS = {
    (CallSite.PLAN_MEAL, FailureKind.QUOTA_EXCEEDED): _QUOTA_MEAL,
    (CallSite.PLAN_WORKOUT, FailureKind.QUOTA_EXCEEDED): _QUOTA_WORKOUT,
    (CallSite.ANALYZE, FailureKind.QUOTA_EXCEEDED): _QUOTA_ANALYZE,
    (CallSite.EXTRACT, FailureKind.QUOTA_EXCEEDED): _QUOTA_EXTRACT,
    (CallSite.CHAT, FailureKind.QUOTA_EXCEEDED): _QUOTA_CHAT,
    (CallSite.PLAN_MEAL, FailureKind.OTHER): _OTHER_MEAL,
    (CallSite.PLAN_WORKOUT, FailureKind.OTHER): _OTHER_WORKOUT,
    (CallSite.ANALYZE, FailureKind.OTHER): _OTHER_ANALYZE,
    (CallSite.EXTRACT, FailureKind.OTHER): _OTHER_EXTRACT,
    (CallSite.CHAT, FailureKind.OTHER): _OTHER_CHAT,
}

_TOOLS_UNAVAILABLE = {
    CallSite.ANALYZE: {
        "zh-TW": "抱歉，我現在無法使用分析工具，請稍後再試。",
        "en": "Sorry, I'm having trouble accessing the analysis tools right now. Please try again later.",
    },
    CallSite.EXTRACT: {
        "zh-TW": "抱歉，我現在無法使用活動記錄工具，請稍後再試。",
        "en": "Sorry, I'm having trouble accessing the activity logging tools right now. Please try again later.",
    },
}

_TOOLS_UNAVAILABLE_DEFAULT = {
    "zh-TW": "抱歉，我現在無法使用相關工具，請稍後再試。",
    "en": "Sorry, I'm having trouble accessing my tools right now. Please try again later.",
}


def env_locale() -> str | None:
    """HEALTH_COMPANION_LOCALE when it names a supported locale, else None."""
    locale = os.environ.get("HEALTH_COMPANION_LOCALE")
    return locale if locale in LOCALES else None


def resolve_locale(kind: FailureKind, locale: str | None = None) -> str:
    """Pick the reply language: the given locale if supported, else the per-kind default."""
    return locale if locale in LOCALES else DEFAULT_LOCALES[kind]


def fallback_message(
    site: CallSite,
    failure: FailureKind | GenerationFailure,
    message: str = "",
    locale: str | None = None,
) -> str:
    """Static reply for a failed generation at the given call site.

    Only the failure's tag is consulted, never its payload.
    """
    kind = failure.kind if isinstance(failure, GenerationFailure) else failure
    lang = resolve_locale(kind, locale)
    text = _FALLBACKS[(site, kind)][lang].replace("{message}", message)
    if kind is FailureKind.QUOTA_EXCEEDED:
        text = f"{QUOTA_NOTICE[lang]}\n\n{text}"
    return text


def tools_unavailable_message(site: CallSite, locale: str | None = None) -> str:
    """Reply for a template that could not be loaded, before any generation."""
    lang = locale if locale in LOCALES else "en"
    return _TOOLS_UNAVAILABLE.get(site, _TOOLS_UNAVAILABLE_DEFAULT)[lang]
