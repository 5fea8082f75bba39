"""
健康问卷题库 - 问题key到标准问题文本的映射
"""
from typing import Dict

# 需要提示AI重点关注的答案
ELEVATED_CONCERN_ANSWERS = frozenset({"often", "yes", "sometimes"})

QUESTIONS: Dict[str, str] = {
    # 睡眠与精力
    "sleep_hours": "Do you sleep less than 6 or more than 9 hours per night consistently?",
    "wake_gasping": "Do you often wake up gasping for air, choking, or with a dry mouth?",
    "exhausted": "Do you feel exhausted even after a full night's sleep?",
    "sleep_changes": "Have you noticed sudden changes in your sleep pattern in the past month?",
    "night_sweats": "Do you experience night sweats or abnormal body temperature during sleep?",

    # 心血管
    "chest_pain": "Do you frequently feel chest tightness, pain, or pressure, especially during exertion?",
    "shortness_breath": "Do you experience shortness of breath when walking short distances or climbing stairs?",
    "swelling": "Have you noticed swelling in your ankles, feet, or hands recently?",
    "irregular_heartbeat": "Do you experience irregular or rapid heartbeat episodes?",
    "heart_history": "Do you have a history of high blood pressure, high cholesterol, or diabetes?",

    # 代谢与内分泌
    "weight_change": "Have you experienced unexplained weight loss or gain in the past 3 months?",
    "thirst_urinate": "Do you often feel excessively thirsty or urinate more than normal?",
    "shaky_dizzy": "Do you frequently feel shaky, dizzy, or fatigued without reason?",
    "temp_tolerance": "Have you noticed significant changes in body temperature tolerance (cold or heat)?",
    "skin_hair_nails": "Do you have persistent dry skin, thinning hair, or brittle nails?",

    # 消化
    "indigestion": "Have you had persistent indigestion, heartburn, or difficulty swallowing?",
    "blood_stool": "Have you noticed blood in your stool, dark tar-like stools, or abdominal pain?",
    "diarrhea_bloating": "Do you have frequent diarrhea, constipation, or unexplained bloating?",
    "appetite_loss": "Have you recently lost appetite or feel full very quickly after eating?",
    "nausea_vomiting": "Do you experience chronic nausea or vomiting without identifiable cause?",

    # 肿瘤与免疫
    "lumps_swelling": "Have you found any lumps, swellings, or thickened areas in your body?",
    "fever_sweats": "Have you experienced unexplained fever, chills, or night sweats lasting weeks?",
    "bruise_bleed": "Do you bruise or bleed more easily than usual?",
    "skin_changes": "Have you noticed any non-healing sores, warts, or skin color changes?",
    "cough_blood": "Have you experienced persistent cough, hoarseness, or blood in sputum?",

    # 神经与肌肉骨骼
    "headaches": "Do you experience frequent headaches, vision changes, or episodes of dizziness?",
    "numbness_tingling": "Have you felt numbness, tingling, or weakness in your limbs?",
    "tremors": "Do you have tremors or uncontrolled muscle movements?",
    "balance_loss": "Have you experienced loss of balance or coordination recently?",
    "pain_joints": "Do you have persistent pain in joints, bones, or muscles without clear cause?",
}


def humanize(key: str) -> str:
    """问题key转为可读文本（下划线替换为空格）"""
    return key.replace("_", " ")


def lookup(key: str) -> str:
    """
    获取问题文本

    未收录的key不会报错，而是生成兜底问题文本，保证Prompt组装不被阻断。
    """
    question = QUESTIONS.get(key)
    if question is None:
        return f"Question about {humanize(key)}"
    return question


def is_elevated_concern(answer: str) -> bool:
    """答案是否提示潜在健康风险（仅用于Prompt中的提示，不做过滤）"""
    if not isinstance(answer, str):
        return False
    return answer.strip().lower() in ELEVATED_CONCERN_ANSWERS
