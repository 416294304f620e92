"""User-facing message templates in every supported language."""

import logging

from schemas.context import Language

logger = logging.getLogger(__name__)

EN, HI, ES, FR, DE, JA, ZH = (
    Language.ENGLISH, Language.HINDI, Language.SPANISH, Language.FRENCH,
    Language.GERMAN, Language.JAPANESE, Language.CHINESE,
)

MESSAGES = {
    "proceed": {
        EN: "Would you like me to proceed?",
        HI: "क्या मैं आगे बढ़ूँ?",
        ES: "¿Quieres que continúe?",
        FR: "Voulez-vous que je continue ?",
        DE: "Soll ich fortfahren?",
        JA: "実行してもよろしいですか？",
        ZH: "需要我继续执行吗？",
    },
    "preview_intro": {
        EN: "I'll {description}.",
        HI: "मैं यह करूँगा: {description}।",
        ES: "Voy a hacer lo siguiente: {description}.",
        FR: "Je vais effectuer ceci : {description}.",
        DE: "Ich werde Folgendes tun: {description}.",
        JA: "次の操作を行います: {description}。",
        ZH: "我将执行：{description}。",
    },
    "preview_heading": {
        EN: "Preview", HI: "पूर्वावलोकन", ES: "Vista previa", FR: "Aperçu",
        DE: "Vorschau", JA: "プレビュー", ZH: "预览",
    },
    "cascade_heading": {
        EN: "Cascade Effects", HI: "स्वचालित प्रभाव", ES: "Efectos en cascada", FR: "Effets en cascade",
        DE: "Folgeeffekte", JA: "連動する変更", ZH: "连带影响",
    },
    "details_heading": {
        EN: "Affected Items", HI: "प्रभावित आइटम", ES: "Elementos afectados", FR: "Éléments concernés",
        DE: "Betroffene Einträge", JA: "影響を受ける項目", ZH: "受影响的项目",
    },
    "warnings_heading": {
        EN: "Please Note", HI: "ध्यान दें", ES: "Ten en cuenta", FR: "À noter",
        DE: "Bitte beachten", JA: "ご注意ください", ZH: "请注意",
    },
    "done": {
        EN: "Done! {message}",
        HI: "हो गया! {message}",
        ES: "¡Listo! {message}",
        FR: "C'est fait ! {message}",
        DE: "Erledigt! {message}",
        JA: "完了しました！{message}",
        ZH: "完成！{message}",
    },
    "also_created": {
        EN: "Also created", HI: "साथ में बनाया गया", ES: "También se creó", FR: "Également créé",
        DE: "Ebenfalls angelegt", JA: "あわせて作成", ZH: "同时创建",
    },
    "cancelled": {
        EN: "Okay, I've cancelled that. Nothing was changed. Let me know if you'd like to try again with different details.",
        HI: "ठीक है, मैंने इसे रद्द कर दिया। कुछ भी नहीं बदला गया। अलग जानकारी के साथ दोबारा कोशिश करनी हो तो बताइए।",
        ES: "De acuerdo, lo he cancelado. No se cambió nada. Dime si quieres intentarlo con otros datos.",
        FR: "D'accord, j'ai annulé. Rien n'a été modifié. Dites-moi si vous voulez réessayer avec d'autres informations.",
        DE: "Alles klar, ich habe das abgebrochen. Es wurde nichts geändert. Sag Bescheid, wenn du es mit anderen Angaben versuchen möchtest.",
        JA: "承知しました。キャンセルしました。変更は行われていません。内容を変えて再度お試しの場合はお知らせください。",
        ZH: "好的，已取消，没有做任何更改。如需用其他信息重试，请告诉我。",
    },
    "expired": {
        EN: "That request timed out before it was confirmed, so I didn't make any changes. Please restate it if you still want it done.",
        HI: "वह अनुरोध पुष्टि से पहले समाप्त हो गया, इसलिए कोई बदलाव नहीं किया गया। अगर अब भी चाहिए तो कृपया फिर से बताइए।",
        ES: "Esa solicitud caducó antes de confirmarse, así que no hice cambios. Vuelve a pedirla si todavía la necesitas.",
        FR: "Cette demande a expiré avant d'être confirmée, je n'ai donc rien modifié. Reformulez-la si vous le souhaitez toujours.",
        DE: "Diese Anfrage ist vor der Bestätigung abgelaufen, daher wurde nichts geändert. Bitte stelle sie erneut, wenn du sie noch brauchst.",
        JA: "確認前にリクエストの有効期限が切れたため、変更は行っていません。必要な場合はもう一度お伝えください。",
        ZH: "该请求在确认前已超时，因此没有做任何更改。如仍需要，请重新说明。",
    },
    "ambiguous": {
        EN: "I found more than one {entity} matching \"{query}\". Which one did you mean?",
        HI: "\"{query}\" से मेल खाते एक से अधिक {entity} मिले। आपका मतलब किससे है?",
        ES: "Encontré más de un {entity} que coincide con \"{query}\". ¿A cuál te refieres?",
        FR: "J'ai trouvé plusieurs {entity} correspondant à « {query} ». Lequel voulez-vous dire ?",
        DE: "Ich habe mehrere Einträge ({entity}) für \"{query}\" gefunden. Welchen meinst du?",
        JA: "「{query}」に一致する{entity}が複数見つかりました。どれのことですか？",
        ZH: "找到多个与“{query}”匹配的{entity}。您指的是哪一个？",
    },
    "no_match": {
        EN: "I couldn't find a {entity} matching \"{query}\". Could you check the name, or would you like me to create it?",
        HI: "\"{query}\" से मेल खाता कोई {entity} नहीं मिला। कृपया नाम जाँचें, या क्या मैं इसे बना दूँ?",
        ES: "No encontré ningún {entity} que coincida con \"{query}\". ¿Puedes revisar el nombre o quieres que lo cree?",
        FR: "Je n'ai trouvé aucun {entity} correspondant à « {query} ». Pouvez-vous vérifier le nom, ou voulez-vous que je le crée ?",
        DE: "Ich konnte keinen Eintrag ({entity}) für \"{query}\" finden. Kannst du den Namen prüfen, oder soll ich ihn anlegen?",
        JA: "「{query}」に一致する{entity}が見つかりませんでした。名前をご確認いただくか、新しく作成しますか？",
        ZH: "没有找到与“{query}”匹配的{entity}。请检查名称，或者需要我新建吗？",
    },
    "no_reference": {
        EN: "Which {entity} do you mean by \"{query}\"? I don't have one in recent context.",
        HI: "\"{query}\" से आपका मतलब किस {entity} से है? हाल की बातचीत में कोई नहीं मिला।",
        ES: "¿A qué {entity} te refieres con \"{query}\"? No tengo ninguno en el contexto reciente.",
        FR: "De quel {entity} parlez-vous avec « {query} » ? Je n'en ai aucun dans le contexte récent.",
        DE: "Welchen Eintrag ({entity}) meinst du mit \"{query}\"? Im aktuellen Verlauf finde ich keinen.",
        JA: "「{query}」はどの{entity}のことですか？最近の会話に該当するものがありません。",
        ZH: "“{query}”指的是哪个{entity}？最近的对话中没有找到。",
    },
    "date_parse": {
        EN: "I couldn't understand the date \"{text}\". Could you give it as YYYY-MM-DD (for example 2026-06-15)?",
        HI: "मैं तारीख \"{text}\" समझ नहीं पाया। कृपया YYYY-MM-DD रूप में बताइए (जैसे 2026-06-15)।",
        ES: "No entendí la fecha \"{text}\". ¿Puedes escribirla como AAAA-MM-DD (por ejemplo 2026-06-15)?",
        FR: "Je n'ai pas compris la date « {text} ». Pouvez-vous l'écrire au format AAAA-MM-JJ (par exemple 2026-06-15) ?",
        DE: "Ich habe das Datum \"{text}\" nicht verstanden. Kannst du es als JJJJ-MM-TT angeben (z. B. 2026-06-15)?",
        JA: "日付「{text}」を理解できませんでした。YYYY-MM-DD 形式（例: 2026-06-15）で入力してください。",
        ZH: "无法识别日期“{text}”。请使用 YYYY-MM-DD 格式（例如 2026-06-15）。",
    },
    "missing_field": {
        EN: "What should I use for {field}?",
        HI: "{field} के लिए क्या रखूँ?",
        ES: "¿Qué valor debo usar para {field}?",
        FR: "Quelle valeur dois-je utiliser pour {field} ?",
        DE: "Welchen Wert soll ich für {field} verwenden?",
        JA: "{field}には何を設定しますか？",
        ZH: "{field}应该填写什么？",
    },
    "invalid_field": {
        EN: "The value for {field} doesn't look right ({reason}). What should it be?",
        HI: "{field} का मान सही नहीं लगता ({reason})। यह क्या होना चाहिए?",
        ES: "El valor de {field} no parece correcto ({reason}). ¿Cuál debería ser?",
        FR: "La valeur de {field} ne semble pas correcte ({reason}). Quelle devrait-elle être ?",
        DE: "Der Wert für {field} scheint nicht zu stimmen ({reason}). Wie soll er lauten?",
        JA: "{field}の値が正しくないようです（{reason}）。何に設定しますか？",
        ZH: "{field}的值似乎不正确（{reason}）。应该是什么？",
    },
    "no_client": {
        EN: "Which wedding is this for? Please select or name a client first.",
        HI: "यह किस शादी के लिए है? कृपया पहले एक क्लाइंट चुनें या उसका नाम बताइए।",
        ES: "¿Para qué boda es esto? Primero selecciona o indica un cliente.",
        FR: "Pour quel mariage est-ce ? Veuillez d'abord sélectionner ou nommer un client.",
        DE: "Für welche Hochzeit ist das? Bitte wähle zuerst einen Kunden aus oder nenne ihn.",
        JA: "どの結婚式についてですか？先にクライアントを選択するか名前を教えてください。",
        ZH: "这是哪场婚礼的？请先选择或说明客户。",
    },
    "execution_failed": {
        EN: "I couldn't complete that: {message}. Would you like to try again or do something else?",
        HI: "मैं इसे पूरा नहीं कर पाया: {message}। क्या आप फिर से कोशिश करना चाहेंगे या कुछ और करना है?",
        ES: "No pude completarlo: {message}. ¿Quieres intentarlo de nuevo o hacer otra cosa?",
        FR: "Je n'ai pas pu terminer : {message}. Voulez-vous réessayer ou faire autre chose ?",
        DE: "Das konnte ich nicht abschließen: {message}. Möchtest du es erneut versuchen oder etwas anderes tun?",
        JA: "完了できませんでした: {message}。もう一度試しますか、それとも別の操作をしますか？",
        ZH: "无法完成：{message}。要重试还是执行其他操作？",
    },
    "partial_completed": {
        EN: "These changes were already saved before the failure",
        HI: "विफलता से पहले ये बदलाव सहेजे जा चुके थे",
        ES: "Estos cambios ya se guardaron antes del fallo",
        FR: "Ces modifications avaient déjà été enregistrées avant l'échec",
        DE: "Diese Änderungen wurden vor dem Fehler bereits gespeichert",
        JA: "失敗前に保存済みの変更",
        ZH: "失败前已保存的更改",
    },
    "apology": {
        EN: "Sorry, I couldn't work out how to do that. Could you rephrase the request?",
        HI: "क्षमा करें, मैं समझ नहीं पाया कि यह कैसे करूँ। क्या आप अनुरोध दूसरे शब्दों में कह सकते हैं?",
        ES: "Lo siento, no supe cómo hacerlo. ¿Puedes reformular la solicitud?",
        FR: "Désolé, je n'ai pas compris comment faire. Pouvez-vous reformuler la demande ?",
        DE: "Entschuldigung, ich wusste nicht, wie ich das umsetzen soll. Kannst du die Anfrage umformulieren?",
        JA: "申し訳ありません、その操作方法がわかりませんでした。言い換えていただけますか？",
        ZH: "抱歉，我不知道该如何处理。能换个说法吗？",
    },
    "generic_error": {
        EN: "Something went wrong on my side. Please try again in a moment.",
        HI: "मेरी तरफ़ से कुछ गड़बड़ हो गई। कृपया थोड़ी देर में फिर से कोशिश करें।",
        ES: "Algo salió mal de mi lado. Inténtalo de nuevo en un momento.",
        FR: "Un problème est survenu de mon côté. Veuillez réessayer dans un instant.",
        DE: "Bei mir ist etwas schiefgelaufen. Bitte versuche es gleich noch einmal.",
        JA: "問題が発生しました。しばらくしてからもう一度お試しください。",
        ZH: "系统出了点问题，请稍后再试。",
    },
    # Query results without model narration
    "query_result": {
        EN: "{message}",
        HI: "यह रहा परिणाम: {message}",
        ES: "Aquí está el resultado: {message}",
        FR: "Voici le résultat : {message}",
        DE: "Hier ist das Ergebnis: {message}",
        JA: "結果はこちらです：{message}",
        ZH: "结果如下：{message}",
    },
    "summary_get_budget_overview": {
        EN: "Budget: {total} total, {paid} paid, {remaining} remaining ({percent}% used)",
        HI: "बजट: कुल {total}, {paid} का भुगतान हुआ, {remaining} शेष ({percent}% उपयोग हुआ)",
        ES: "Presupuesto: {total} en total, {paid} pagado, {remaining} restante ({percent}% usado)",
        FR: "Budget : {total} au total, {paid} payé, {remaining} restant ({percent} % utilisé)",
        DE: "Budget: {total} gesamt, {paid} bezahlt, {remaining} übrig ({percent} % verbraucht)",
        JA: "予算：合計{total}、支払済み{paid}、残り{remaining}（{percent}%使用）",
        ZH: "预算：总计{total}，已付{paid}，剩余{remaining}（已使用{percent}%）",
    },
    "summary_get_guest_stats": {
        EN: "Found {total} guests: {confirmed} confirmed, {pending} pending, {declined} declined",
        HI: "{total} मेहमान: {confirmed} पुष्ट, {pending} लंबित, {declined} अस्वीकृत",
        ES: "{total} invitados: {confirmed} confirmados, {pending} pendientes, {declined} rechazados",
        FR: "{total} invités : {confirmed} confirmés, {pending} en attente, {declined} déclinés",
        DE: "{total} Gäste: {confirmed} zugesagt, {pending} ausstehend, {declined} abgesagt",
        JA: "ゲスト{total}名：出席{confirmed}名、未回答{pending}名、欠席{declined}名",
        ZH: "共{total}位宾客：{confirmed}位已确认，{pending}位待定，{declined}位谢绝",
    },
    "summary_sync_hotel_guests": {
        EN: "Found {hotels} hotels with {guests} guests",
        HI: "{hotels} होटलों में {guests} मेहमान",
        ES: "{hotels} hoteles con {guests} invitados",
        FR: "{hotels} hôtels avec {guests} invités",
        DE: "{hotels} Hotels mit {guests} Gästen",
        JA: "ホテル{hotels}軒、ゲスト{guests}名",
        ZH: "{hotels}家酒店，共{guests}位宾客",
    },
}

ENTITY_LABELS = {
    "client": {EN: "client", HI: "क्लाइंट", ES: "cliente", FR: "client", DE: "Kunde", JA: "クライアント", ZH: "客户"},
    "guest": {EN: "guest", HI: "मेहमान", ES: "invitado", FR: "invité", DE: "Gast", JA: "ゲスト", ZH: "宾客"},
    "vendor": {EN: "vendor", HI: "वेंडर", ES: "proveedor", FR: "prestataire", DE: "Dienstleister", JA: "業者", ZH: "供应商"},
    "event": {EN: "event", HI: "कार्यक्रम", ES: "evento", FR: "événement", DE: "Veranstaltung", JA: "イベント", ZH: "活动"},
    "budget_item": {
        EN: "budget item", HI: "बजट मद", ES: "partida", FR: "poste budgétaire",
        DE: "Budgetposten", JA: "予算項目", ZH: "预算项目",
    },
    "hotel_booking": {
        EN: "hotel booking", HI: "होटल बुकिंग", ES: "reserva de hotel", FR: "réservation d'hôtel",
        DE: "Hotelbuchung", JA: "ホテル予約", ZH: "酒店预订",
    },
    "gift": {EN: "gift", HI: "उपहार", ES: "regalo", FR: "cadeau", DE: "Geschenk", JA: "ギフト", ZH: "礼物"},
    "timeline_item": {
        EN: "timeline item", HI: "समय-सारिणी आइटम", ES: "elemento del cronograma", FR: "élément du planning",
        DE: "Ablaufpunkt", JA: "タイムライン項目", ZH: "日程项目",
    },
}


def translate(key: str, language: Language, **values) -> str:
    """Render message ``key`` in ``language``, falling back to English."""
    templates = MESSAGES[key]
    template = templates.get(language)
    if template is None:
        logger.debug(f"No {language.value} template for {key}, using English")
        template = templates[EN]
    return template.format(**values)


def entity_label(entity_type: str, language: Language) -> str:
    labels = ENTITY_LABELS.get(entity_type, {})
    return labels.get(language) or labels.get(EN) or entity_type.replace("_", " ")
